"""The HTML document shared by every serving path.

The production SPA fallback, the dev asset server, and server-rendered
views all produce markup with the same shape: a ``<!DOCTYPE html>``
document holding a mount element and a module script for the client
entry bundle.
"""

import re

from movico.errors import ConfigurationError

DEFAULT_MOUNT_ID = "root"
DEFAULT_ENTRY_SCRIPT = "/main.js"

DEFAULT_DOCUMENT = (
    "<!DOCTYPE html>"
    '<html lang="en">'
    "<head>"
    '<meta charset="UTF-8">'
    '<meta name="viewport" content="width=device-width, initial-scale=1.0">'
    "<title>Movico App</title>"
    "</head>"
    "<body>"
    '<div id="root"></div>'
    '<script type="module" src="/main.js"></script>'
    "</body>"
    "</html>"
)

NOT_FOUND_PAGE = (
    "<!DOCTYPE html>"
    '<html lang="en">'
    "<head><title>404 - Not Found</title></head>"
    "<body><h1>404 - Page Not Found</h1></body>"
    "</html>"
)


def _mount_pattern(mount_id: str) -> re.Pattern[str]:
    return re.compile(
        rf"(<(?P<tag>[a-zA-Z][a-zA-Z0-9]*)\b[^>]*\bid=[\"']{re.escape(mount_id)}[\"'][^>]*>)"
        r"(?P<inner>.*?)"
        r"(</(?P=tag)>)",
        re.DOTALL,
    )


def check_document(document: str, mount_id: str = DEFAULT_MOUNT_ID) -> str:
    """Validate the document contract and return the document unchanged.

    Raises ``ConfigurationError`` when the doctype, the mount element,
    or the module script is missing.
    """
    if not document.lstrip().lower().startswith("<!doctype html>"):
        msg = "HTML document must start with <!DOCTYPE html>"
        raise ConfigurationError(msg)
    if _mount_pattern(mount_id).search(document) is None:
        msg = f"HTML document has no mount element with id={mount_id!r}"
        raise ConfigurationError(msg)
    if '<script type="module"' not in document:
        msg = "HTML document must reference the client entry bundle with a module script"
        raise ConfigurationError(msg)
    return document


def mount(document: str, markup: str, mount_id: str = DEFAULT_MOUNT_ID) -> str:
    """Place pre-rendered *markup* inside the document's mount element.

    The mount element is expected to be empty (or hold flat text) in the
    template. The rest of the document, including the client entry
    script, is untouched.
    """
    pattern = _mount_pattern(mount_id)
    match = pattern.search(document)
    if match is None:
        msg = f"HTML document has no mount element with id={mount_id!r}"
        raise ConfigurationError(msg)
    start, end = match.span("inner")
    return document[:start] + markup + document[end:]


def inject_before(document: str, snippet: str, target: str = "</head>") -> str:
    """Insert *snippet* before the first *target*, or append it."""
    if target in document:
        return document.replace(target, snippet + target, 1)
    return document + snippet

"""Static file serving.

``StaticFiles`` serves files from a directory for matching URL paths and
falls through to the next handler on a miss, which is what lets a route
chain end in an SPA fallback endpoint. ``send_file`` sends one fixed
file, used for the production entry document.
"""

import fnmatch
import mimetypes
from pathlib import Path

import anyio

from movico.errors import HTTPError, NotFound
from movico.http.request import Request
from movico.http.response import Response
from movico.middleware.protocol import Next


async def send_file(
    path: str | Path,
    *,
    status: int = 200,
    cache_control: str | None = None,
) -> Response:
    """Read *path* and build a response with a guessed content type.

    Raises ``NotFound`` if the file does not exist.
    """
    file_path = anyio.Path(path)
    if not await file_path.is_file():
        raise NotFound(f"File not found: {path}")

    content_type, _ = mimetypes.guess_type(str(path))
    if content_type is None:
        content_type = "application/octet-stream"
    elif content_type.startswith("text/") or content_type == "application/javascript":
        content_type = f"{content_type}; charset=utf-8"

    body = await file_path.read_bytes()
    response = Response(body=body, content_type=content_type, status=status).with_header(
        "Content-Length", str(len(body))
    )
    if cache_control:
        response = response.with_header("Cache-Control", cache_control)
    return response


class StaticFiles:
    """Middleware that serves static files from a directory.

    Files are served for GET and HEAD requests whose path falls under
    the configured prefix. Everything else, including missing files,
    falls through to the next handler.

    Security: resolves symlinks and verifies the final path is within
    the configured directory to prevent path traversal.

    Usage::

        StaticFiles("./dist", prefix="/")
        StaticFiles("./src", prefix="/", index=None, cache_control="no-cache",
                    exclude_suffixes=(".html",), serve_hidden=False,
                    deny=("*.pem", "*.crt"))
    """

    __slots__ = (
        "_cache_control",
        "_deny",
        "_directory",
        "_exclude",
        "_index",
        "_prefix",
        "_serve_hidden",
    )

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/",
        *,
        index: str | None = "index.html",
        cache_control: str = "public, max-age=3600",
        exclude_suffixes: tuple[str, ...] = (),
        serve_hidden: bool = True,
        deny: tuple[str, ...] = (),
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control
        self._exclude = tuple(s.lower() for s in exclude_suffixes)
        self._serve_hidden = serve_hidden
        self._deny = tuple(p.lower() for p in deny)

        # Normalize prefix: ensure leading slash, strip trailing.
        # Root prefix "/" normalizes to "".
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    @property
    def directory(self) -> Path:
        """The resolved directory files are served from."""
        return self._directory

    async def __call__(self, request: Request, next: Next) -> Response:
        """Serve a static file or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        file_path = self._resolve(request.path)
        if file_path is None:
            return await next(request)
        return await send_file(file_path, cache_control=self._cache_control)

    def _resolve(self, path: str) -> Path | None:
        """Map a URL path to a servable file, or None to fall through."""
        if self._prefix:
            if not path.startswith(self._prefix + "/") and path != self._prefix:
                return None
            relative = path[len(self._prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            raise HTTPError(status=403, detail="Forbidden")

        if file_path.is_dir():
            if self._index is None:
                return None
            file_path = file_path / self._index

        if not file_path.is_file():
            return None
        if self._exclude and file_path.suffix.lower() in self._exclude:
            return None
        if not self._serve_hidden and (
            _is_hidden(relative) or _is_hidden(file_path.relative_to(self._directory).as_posix())
        ):
            return None
        name = file_path.name.lower()
        if any(fnmatch.fnmatchcase(name, pattern) for pattern in self._deny):
            return None
        return file_path


def _is_hidden(relative: str) -> bool:
    """True if any segment of the URL path names a dotfile or dot-directory."""
    return any(
        part.startswith(".") for part in relative.split("/") if part not in ("", ".", "..")
    )

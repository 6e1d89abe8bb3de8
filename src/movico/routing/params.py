"""Path parameter converters.

Built-in converters for route path segments like ``{id:int}``. The
``path`` converter, and the bare ``*`` wildcard that maps onto it,
consumes the rest of the URL.
"""

WILDCARD = "*"
WILDCARD_PARAM = "wildcard"

# Regex pattern each converter accepts for a single path segment
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".*",
}

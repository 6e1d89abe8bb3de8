"""Route table with trie-based path matching.

Routes are bound while the application initializes and the table is
compiled read-only before traffic starts. Matching prefers static
segments over parameters over wildcards; among routes bound to the same
pattern and method, the first one bound wins.
"""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from movico.errors import ConfigurationError, MethodNotAllowed, NotFound
from movico.http.request import Request
from movico.http.response import Response
from movico.routing.params import CONVERTERS, WILDCARD, WILDCARD_PARAM
from movico.routing.route import PathSegment, Route, RouteMatch

logger = logging.getLogger("movico.router")

type Fallback = Callable[[Request], Awaitable[Response]]


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"             -> [PathSegment("users")]
        "/users/{id}"        -> [..., PathSegment("{id}", is_param=True, param_name="id")]
        "/users/{id:int}"    -> [..., PathSegment("{id:int}", ..., param_type="int")]
        "/files/{rest:path}" -> [..., PathSegment("{rest:path}", ..., param_type="path")]
        "*"                  -> [PathSegment("*", ..., param_name="wildcard", param_type="path")]
    """
    segments: list[PathSegment] = []
    parts = [p for p in path.strip("/").split("/") if p]
    for i, part in enumerate(parts):
        if part.startswith("<") and part.endswith(">"):
            msg = (
                f"Route {path!r} uses <param> syntax. "
                "Use {param} (or {param:int}) for path parameters."
            )
            raise ConfigurationError(msg)

        if part == WILDCARD:
            segment = PathSegment(
                value=part, is_param=True, param_name=WILDCARD_PARAM, param_type="path"
            )
        elif part.startswith("{") and part.endswith("}"):
            param_name, _, param_type = part[1:-1].partition(":")
            param_type = param_type or "str"
            if param_type not in CONVERTERS:
                msg = f"Route {path!r} uses unknown converter {param_type!r}"
                raise ConfigurationError(msg)
            segment = PathSegment(
                value=part, is_param=True, param_name=param_name, param_type=param_type
            )
        else:
            segment = PathSegment(value=part)

        if segment.param_type == "path" and i != len(parts) - 1:
            msg = f"Route {path!r}: a wildcard must be the last segment"
            raise ConfigurationError(msg)
        segments.append(segment)
    return segments


class _TrieNode:
    """A node in the route trie. Mutable until the router compiles."""

    __slots__ = ("children", "param_child", "routes_by_method", "wildcard")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param pattern per level)
        self.param_child: _ParamEdge | None = None
        # Wildcard edge consuming the rest of the path
        self.wildcard: _WildcardEdge | None = None
        # Routes terminating at this node, keyed by HTTP method
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    param_name: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _WildcardEdge:
    """A wildcard edge — consumes the remaining path, possibly empty."""

    param_name: str
    routes_by_method: dict[str, Route]


def _bind(routes_by_method: dict[str, Route], route: Route) -> None:
    for method in route.methods:
        existing = routes_by_method.get(method)
        if existing is not None:
            logger.debug(
                "Route %s %s already bound; later binding is shadowed", method, existing.path
            )
            continue
        routes_by_method[method] = route


class Router:
    """Route table with trie-based path matching and an optional fallback.

    Usage::

        router = Router()
        router.add(Route("/users/{id:int}", handler, frozenset({"GET"})))
        router.add(Route("*", spa, frozenset({"GET"})))
        router.set_fallback(not_found)
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_fallback", "_root", "_routes")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._routes: list[Route] = []
        self._fallback: Fallback | None = None
        self._compiled = False

    def add(self, route: Route) -> None:
        """Bind a route. Must be called before compile()."""
        self._check_not_compiled()

        node = self._root
        for seg in parse_path(route.path):
            if seg.param_type == "path":
                if node.wildcard is None:
                    node.wildcard = _WildcardEdge(
                        param_name=seg.param_name or WILDCARD_PARAM, routes_by_method={}
                    )
                _bind(node.wildcard.routes_by_method, route)
                self._routes.append(route)
                return

            if seg.is_param:
                if node.param_child is None:
                    node.param_child = _ParamEdge(
                        param_name=seg.param_name or "",
                        regex=re.compile(f"^{CONVERTERS[seg.param_type]}$"),
                        node=_TrieNode(),
                    )
                node = node.param_child.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        _bind(node.routes_by_method, route)
        self._routes.append(route)

    def set_fallback(self, handler: Fallback) -> None:
        """Install the handler used when no route matches."""
        self._check_not_compiled()
        self._fallback = handler

    @property
    def fallback(self) -> Fallback | None:
        """The handler for unmatched requests, if one is installed."""
        return self._fallback

    @property
    def routes(self) -> list[Route]:
        """All bound routes, in binding order."""
        return list(self._routes)

    @property
    def compiled(self) -> bool:
        """True once the table is read-only."""
        return self._compiled

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request method and path against the bound routes.

        Returns a ``RouteMatch`` on success.
        Raises ``MethodNotAllowed`` if the path matches but no route
        for it accepts the method, ``NotFound`` if nothing matches.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        found = self._match_node(self._root, parts, 0, {}, method)
        if found is not None:
            return found

        allowed: set[str] = set()
        self._collect_methods(self._root, parts, 0, allowed)
        if allowed:
            raise MethodNotAllowed(frozenset(allowed))
        raise NotFound(f"No route matches {method} {path!r}")

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
        method: str,
    ) -> RouteMatch | None:
        """Depth-first search for a route accepting *method*."""
        if index == len(parts) and method in node.routes_by_method:
            return RouteMatch(route=node.routes_by_method[method], path_params=params)

        if index < len(parts):
            part = parts[index]

            # 1. Static child (exact match)
            child = node.children.get(part)
            if child is not None:
                found = self._match_node(child, parts, index + 1, params, method)
                if found is not None:
                    return found

            # 2. Parameter child
            edge = node.param_child
            if edge is not None and edge.regex.match(part):
                found = self._match_node(
                    edge.node, parts, index + 1, {**params, edge.param_name: part}, method
                )
                if found is not None:
                    return found

        # 3. Wildcard: consumes the rest, including nothing
        wildcard = node.wildcard
        if wildcard is not None and method in wildcard.routes_by_method:
            remaining = "/".join(parts[index:])
            return RouteMatch(
                route=wildcard.routes_by_method[method],
                path_params={**params, wildcard.param_name: remaining},
            )
        return None

    def _collect_methods(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        allowed: set[str],
    ) -> None:
        """Collect every method bound to a pattern matching the path."""
        if index == len(parts):
            allowed.update(node.routes_by_method)
        else:
            part = parts[index]
            child = node.children.get(part)
            if child is not None:
                self._collect_methods(child, parts, index + 1, allowed)
            edge = node.param_child
            if edge is not None and edge.regex.match(part):
                self._collect_methods(edge.node, parts, index + 1, allowed)
        if node.wildcard is not None:
            allowed.update(node.wildcard.routes_by_method)

    def _check_not_compiled(self) -> None:
        if self._compiled:
            msg = "Cannot modify the route table after it has been compiled."
            raise ConfigurationError(msg)

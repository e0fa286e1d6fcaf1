"""
=============================================================================
URL ROUTER
=============================================================================

Ordered, first-match-wins routing on the raw request target.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   GET /echo/abc                                                     │
    │        │                                                            │
    │        ▼                                                            │
    │   ┌──────────────────────────────────────────────────────────┐      │
    │   │  ANY  /              → root                              │      │
    │   │  ANY  /user-agent    → user_agent                        │      │
    │   │  ANY  /echo/*value   → echo          ← MATCH             │      │
    │   │  ANY  /files/*name   → files                             │      │
    │   └──────────────────────────────────────────────────────────┘      │
    │        │                                                            │
    │        ▼                                                            │
    │   path_params = {"value": "abc"}                                    │
    │   route_meta  = {"compress": True}                                  │
    │                                                                     │
    │   Nothing matched → 404 Not Found, for every method.                │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

PATTERN SYNTAX
--------------
    /user-agent      static segment, matched exactly
    /echo/*value     the rest of the target, may be     (?P<value>.*)
                     empty, may contain slashes

Patterns are compiled to regexes once, when the route is added. After
startup the table is only read, so every connection thread can share
one Router without locking.

The target is matched exactly as received: no trailing-slash stripping,
no percent-decoding, no query-string removal.

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .request import HTTPRequest
from .response import HTTPResponse, not_found


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """
    A registered route.

    Attributes:
        path: The pattern as registered, e.g. "/files/*name".
        handler: Called with the request when the pattern matches.
        name: Optional label, shown in the startup log.
        meta: Free-form flags read by middleware (e.g. compress=True).
    """
    path: str
    handler: Handler
    name: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    route: Route
    params: Dict[str, str]


class Router:
    """
    HTTP request router.

        router = Router()

        router.add_route("/echo/*value", echo, compress=True)

        response = router.handle(request)
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(
        self,
        path: str,
        handler: Handler,
        name: Optional[str] = None,
        **meta: Any
    ) -> Route:
        """
        Register a route for every method. Routes are tried in
        registration order.

        Args:
            path: URL pattern (e.g. "/echo/*value").
            handler: Function taking a request and returning a response.
            name: Optional route name.
            **meta: Metadata exposed to middleware via request.route_meta.

        Returns:
            The registered Route.
        """
        pattern, param_names = self._compile_pattern(path)
        route = Route(
            path=path,
            handler=handler,
            name=name,
            meta=meta,
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> tuple:
        """
        Compile a route pattern into an anchored regex.

            "/"                → ^/$
            "/user-agent"      → ^/user\\-agent$
            "/echo/*value"     → ^/echo/(?P<value>.*)$

        Returns:
            Tuple of (compiled regex, list of parameter names).
        """
        param_names: List[str] = []
        regex_parts = ["^"]

        segments = path.split("/")[1:] if path.startswith("/") else path.split("/")

        for segment in segments:
            regex_parts.append("/")

            if segment.startswith("*"):
                param_name = segment[1:] or "wildcard"
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>.*)")
                # Wildcard consumes the rest of the target
                break

            else:
                regex_parts.append(re.escape(segment))

        regex_parts.append("$")
        return re.compile("".join(regex_parts)), param_names

    def match(self, path: str) -> Optional[RouteMatch]:
        """
        Find the first route matching the raw target. Every route accepts
        every method.

        Returns:
            RouteMatch, or None if no route matches.
        """
        for route in self._routes:
            m = route._pattern.match(path)
            if m:
                return RouteMatch(route=route, params=m.groupdict())
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request to its handler, or answer 404.

        Path parameters and route metadata are attached to the request
        before the handler runs.
        """
        match = self.match(request.path)
        if match is None:
            return not_found()

        request.path_params = match.params
        request.route_meta = match.route.meta
        return match.route.handler(request)

    def routes(self) -> List[Route]:
        return list(self._routes)


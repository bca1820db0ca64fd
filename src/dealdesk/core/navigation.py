"""In-process view router.

Tracks the current view URL and history, and runs route guards before a
protected view is entered. Guards receive the requested URL and the navigator
itself so they can redirect (e.g. to the login view) when they deny entry.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlencode, urlsplit

import structlog

logger = structlog.get_logger(__name__)

# guard(requested_url, navigator) -> allowed
RouteGuard = Callable[[str, "Navigator"], bool]

WILDCARD = "**"


@dataclass(frozen=True)
class Route:
    """A view path, its guards, and an optional redirect target.

    ``path`` matches itself and everything beneath it (``/deals`` matches
    ``/deals/42/edit``). The empty path matches only the root; ``**`` matches
    anything.
    """

    path: str
    guards: tuple[RouteGuard, ...] = ()
    redirect_to: str | None = None

    def matches(self, url_path: str) -> bool:
        if self.path == WILDCARD:
            return True
        target = url_path.strip("/")
        own = self.path.strip("/")
        if not own:
            return not target
        return target == own or target.startswith(own + "/")


@dataclass
class Navigator:
    """Resolves navigations against a route table.

    Args:
        routes: Ordered route table; the first matching route wins.
        initial_url: URL considered current before any navigation.
    """

    routes: Sequence[Route]
    initial_url: str = "/"
    history: list[str] = field(default_factory=list)
    current_url: str = field(init=False, default="")

    def __post_init__(self) -> None:
        self.current_url = self.initial_url

    @staticmethod
    def build_url(path: str, query_params: Mapping[str, str] | None = None) -> str:
        """Join a path and query parameters into a view URL."""
        if not path.startswith("/"):
            path = "/" + path
        if query_params:
            return f"{path}?{urlencode(query_params)}"
        return path

    @property
    def current_path(self) -> str:
        return urlsplit(self.current_url).path

    def query_param(self, name: str) -> str | None:
        """Read a query parameter from the current URL."""
        values = parse_qs(urlsplit(self.current_url).query).get(name)
        return values[0] if values else None

    def is_at(self, path: str) -> bool:
        """True when the current view is ``path`` or lies beneath it."""
        return Route(path).matches(self.current_path)

    def navigate(
        self,
        path: str,
        query_params: Mapping[str, str] | None = None,
        replace_url: bool = False,
    ) -> bool:
        """Enter a view if every guard on its route allows it.

        Returns:
            True if the navigation completed, False if a guard denied it.
        """
        url = self.build_url(path, query_params)
        route = self._resolve(urlsplit(url).path)

        if route is not None and route.redirect_to is not None:
            return self.navigate(route.redirect_to, replace_url=replace_url)

        if route is not None:
            for guard in route.guards:
                if not guard(url, self):
                    logger.debug("navigation.blocked", url=url, route=route.path)
                    return False

        if replace_url and self.history:
            self.history[-1] = url
        else:
            self.history.append(url)
        self.current_url = url
        logger.debug("navigation.completed", url=url, replace_url=replace_url)
        return True

    def _resolve(self, url_path: str) -> Route | None:
        for route in self.routes:
            if route.matches(url_path):
                return route
        return None

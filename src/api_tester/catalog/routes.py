"""Route catalog: lists the API routes of a running Starlette/FastAPI app."""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator

from starlette.endpoints import HTTPEndpoint
from starlette.routing import Host, Mount, Route

from api_tester.catalog.docblock import extract_parameters
from api_tester.catalog.handlers import HandlerRef, callable_name, resolve_handler
from api_tester.catalog.models import METHODS, RouteDescriptor
from api_tester.errors import InvalidInvocation, UnresolvedHandler

logger = logging.getLogger(__name__)

SORT_FIELDS = ("host", "method", "uri", "name", "handler", "middleware")


@dataclass
class _Row:
    """A route that passed the prefix filter, before its parameters are mined."""

    info: dict[str, Any]
    handler: HandlerRef | None = None
    error: UnresolvedHandler | None = None


@dataclass
class _Scope:
    host: str | None = None
    path: str = ""
    middleware: list[str] = field(default_factory=list)


class RouteCatalog:
    """Reads the live route table of an ASGI application."""

    def __init__(self, app: Any):
        self.app = app

    @staticmethod
    def sort(rows: list[_Row], field_name: str) -> list[_Row]:
        """Stable sort on the string value of one descriptor field."""
        if field_name not in SORT_FIELDS:
            raise InvalidInvocation(f"Cannot sort routes by {field_name!r}; expected one of {', '.join(SORT_FIELDS)}.")
        return sorted(rows, key=lambda row: _sort_key(row, field_name))

    def list(self, prefix: str = "api", sort: str | None = None) -> list[RouteDescriptor]:
        """List routes whose URI starts with ``prefix``.

        Unresolvable handlers are dropped after sorting, so the remaining
        entries keep their sorted order.
        """
        rows = [self._make_row(route, scope) for route, scope in self._walk() if _matches(route, scope, prefix)]

        if sort:
            rows = self.sort(rows, sort)

        descriptors = []
        for row in rows:
            if row.handler is None:
                logger.debug("Dropping %s %s: %s", row.info["method"], row.info["uri"], row.error)
                continue
            descriptors.append(RouteDescriptor(**row.info, parameters=extract_parameters(row.handler)))
        return descriptors

    def _walk(self) -> Iterator[tuple[Route, _Scope]]:
        root = _Scope(middleware=_middleware_names(self.app))
        yield from _walk_routes(getattr(self.app, "routes", []), root)

    def _make_row(self, route: Route, scope: _Scope) -> _Row:
        method = _route_method(route)
        row = _Row(
            info={
                "host": scope.host,
                "method": method,
                "uri": scope.path + route.path,
                "name": route.name,
                "handler": "",
                "middleware": scope.middleware + _dependency_names(route),
            }
        )
        try:
            row.handler = resolve_handler(route.endpoint, method)
        except UnresolvedHandler as e:
            row.error = e
        else:
            row.info["handler"] = row.handler.identity
        return row


def _walk_routes(routes: list, scope: _Scope) -> Iterator[tuple[Route, _Scope]]:
    for route in routes:
        if isinstance(route, Route):
            if _route_method(route) is not None:
                yield route, scope
        elif isinstance(route, Mount):
            sub_app = route.app
            inner = _Scope(
                host=scope.host,
                path=scope.path + route.path,
                middleware=scope.middleware + _middleware_names(sub_app),
            )
            yield from _walk_routes(route.routes, inner)
        elif isinstance(route, Host):
            inner = _Scope(host=route.host, path=scope.path, middleware=scope.middleware)
            yield from _walk_routes(route.routes, inner)


def _matches(route: Route, scope: _Scope, prefix: str) -> bool:
    return (scope.path + route.path).lstrip("/").startswith(prefix.lstrip("/"))


def _route_method(route: Route) -> str | None:
    """First verb of the fixed verb set that the route accepts."""
    methods = route.methods
    if methods is None and isinstance(route.endpoint, type) and issubclass(route.endpoint, HTTPEndpoint):
        methods = {m for m in METHODS if hasattr(route.endpoint, m.lower())}
    if methods is None:
        return METHODS[0]
    return next((m for m in METHODS if m in methods), None)


def _middleware_names(app: Any) -> list[str]:
    names = []
    for middleware in getattr(app, "user_middleware", None) or []:
        options = getattr(middleware, "kwargs", None) or getattr(middleware, "options", None) or {}
        dispatch = options.get("dispatch")
        names.append(callable_name(dispatch if dispatch is not None else middleware.cls))
    return names


def _dependency_names(route: Route) -> list[str]:
    return [callable_name(dep.dependency) for dep in getattr(route, "dependencies", None) or [] if dep.dependency]


def _sort_key(row: _Row, field_name: str) -> str:
    value = row.info.get(field_name)
    if value is None:
        return ""
    if isinstance(value, list):
        return ",".join(value)
    return str(value)

"""Dispatch engine: runs a SyntheticRequest through the app's own ASGI pipeline.

Requests are driven in-process with Starlette's TestClient, so no socket is
ever opened. Faults raised while handling are rendered into a response
instead of propagating to the caller.
"""

import logging
from http import HTTPStatus
from http.cookies import CookieError, SimpleCookie
from typing import Any, Callable

import httpx
from starlette.exceptions import HTTPException
from starlette.responses import PlainTextResponse, Response
from starlette.testclient import TestClient

from api_tester.config import Settings, import_object
from api_tester.dispatch.models import SimulatedResponse, SyntheticRequest

logger = logging.getLogger(__name__)

QUERY_METHODS = ("GET", "HEAD")


class ActingPrincipal:
    """ASGI wrapper that installs a principal into the scope of one call.

    The principal lives in the request scope only. No process-wide state is touched.
    """

    def __init__(self, app: Any, principal: Any = None):
        self.app = app
        self.principal = principal

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and self.principal is not None:
            scope = dict(scope)
            scope["user"] = self.principal
            scope["state"] = {**(scope.get("state") or {}), "acting_principal": self.principal}
        await self.app(scope, receive, send)


class DispatchEngine:
    """Feeds synthetic requests into an ASGI application."""

    def __init__(self, app: Any, settings: Settings | None = None, user_retriever: Callable | None = None):
        self.app = app
        self.settings = settings or Settings()
        self.user_retriever = user_retriever

    def dispatch(self, request: SyntheticRequest, impersonated_user_id: str | None = None) -> SimulatedResponse:
        """Run one request to completion. Never raises for a faulting target."""
        principal = None
        if impersonated_user_id is not None:
            principal = self.resolve_principal(impersonated_user_id)

        client = TestClient(
            ActingPrincipal(self.app, principal),
            base_url=self.settings.base_url,
            raise_server_exceptions=False,
            follow_redirects=False,
        )
        response = None
        try:
            response = client.send(self._build(client, request))
            return capture(response)
        except Exception as e:
            logger.warning("Simulated %s %s failed: %s", request.method, request.url, e, exc_info=True)
            return capture_rendered(render_fault(e))
        finally:
            if response is not None:
                response.close()
            client.close()

    def resolve_principal(self, user_id: str) -> Any:
        """Look the user up; any failure means dispatching with no principal."""
        try:
            retriever = self.user_retriever
            if retriever is None and self.settings.user_retriever:
                retriever = import_object(self.settings.user_retriever)
            if retriever is not None:
                return retriever(user_id)
            providers = self.app.state.auth_providers
            return providers[self.settings.guard].retrieve_by_id(user_id)
        except Exception:
            logger.warning("Could not resolve user %r; dispatching without a principal", user_id, exc_info=True)
            return None

    def _build(self, client: httpx.Client, request: SyntheticRequest) -> httpx.Request:
        kwargs: dict[str, Any] = {"headers": request.headers}
        if request.method in QUERY_METHODS:
            kwargs["params"] = request.scalar_parameters
        elif request.scalar_parameters:
            kwargs["data"] = request.scalar_parameters
        if request.file_parameters:
            kwargs["files"] = [
                (name, (upload.filename, upload.content, upload.content_type))
                for name, uploads in request.file_parameters.items()
                for upload in uploads
            ]
        return client.build_request(request.method, request.url, **kwargs)


def render_fault(exc: Exception) -> Response:
    """Starlette's default rendering of an unhandled exception."""
    if isinstance(exc, HTTPException):
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)
    return PlainTextResponse("Internal Server Error", status_code=500)


def capture(response: httpx.Response) -> SimulatedResponse:
    headers = _group_headers(response.headers.multi_items())
    return SimulatedResponse(
        status_code=response.status_code,
        status_text=response.reason_phrase,
        headers=headers,
        cookies=parse_cookies(headers.get("set-cookie", [])),
        raw_body=response.text,
        content_type=response.headers.get("content-type", ""),
    )


def capture_rendered(response: Response) -> SimulatedResponse:
    """Capture a response rendered locally rather than received from the app."""
    headers = _group_headers((k.decode("latin-1"), v.decode("latin-1")) for k, v in response.raw_headers)
    try:
        status_text = HTTPStatus(response.status_code).phrase
    except ValueError:
        status_text = ""
    return SimulatedResponse(
        status_code=response.status_code,
        status_text=status_text,
        headers=headers,
        cookies=parse_cookies(headers.get("set-cookie", [])),
        raw_body=bytes(response.body).decode(response.charset or "utf-8", errors="replace"),
        content_type=response.headers.get("content-type", ""),
    )


def parse_cookies(values: list[str]) -> list[dict[str, Any]]:
    """Turn Set-Cookie header values into plain dicts."""
    cookies = []
    for value in values:
        jar = SimpleCookie()
        try:
            jar.load(value)
        except CookieError:
            logger.debug("Ignoring malformed Set-Cookie header %r", value)
            continue
        for name, morsel in jar.items():
            cookie: dict[str, Any] = {"name": name, "value": morsel.value}
            cookie.update({key: attr for key, attr in morsel.items() if attr})
            cookies.append(cookie)
    return cookies


def _group_headers(items) -> dict[str, list[str]]:
    headers: dict[str, list[str]] = {}
    for name, value in items:
        headers.setdefault(name.lower(), []).append(value)
    return headers

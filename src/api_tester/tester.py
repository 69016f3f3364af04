"""The ApiTester facade over catalog, dispatch, formatting and the ledger."""

from collections.abc import Iterable, Mapping
from typing import Any, Callable

from api_tester.catalog.models import METHODS, RouteDescriptor
from api_tester.catalog.routes import RouteCatalog
from api_tester.config import Settings
from api_tester.dispatch.engine import DispatchEngine
from api_tester.dispatch.models import AUTH_TYPES, AuthDirective, SimulatedResponse
from api_tester.dispatch.synthesizer import RequestSynthesizer
from api_tester.errors import InvalidInvocation
from api_tester.formatter import FormattedResult, format_response
from api_tester.ledger import InvocationLedger


class ApiTester:
    """Lists an app's API routes and simulates calls against them in-process."""

    def __init__(self, app: Any, settings: Settings | None = None, user_retriever: Callable | None = None):
        self.app = app
        self.settings = settings or Settings()
        self.catalog = RouteCatalog(app)
        self.synthesizer = RequestSynthesizer(self.settings.base_url)
        self.engine = DispatchEngine(app, self.settings, user_retriever=user_retriever)
        self.ledger = InvocationLedger(self.settings.ledger_path) if self.settings.ledger_path else None

    def routes(self, sort: str | None = None) -> list[RouteDescriptor]:
        return self.catalog.list(self.settings.prefix, sort=sort)

    def auth_types(self) -> list[dict[str, Any]]:
        return [dict(item) for item in AUTH_TYPES]

    def call(
        self,
        method: str | None,
        uri: str | None,
        parameters: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        auth: AuthDirective | None = None,
    ) -> SimulatedResponse:
        """Simulate one call. Raises InvalidInvocation only for bad input."""
        if not method or not uri:
            raise InvalidInvocation("Method and URI are required.")
        method = method.upper()
        if method not in METHODS:
            raise InvalidInvocation(f"Unsupported method {method!r}; expected one of {', '.join(METHODS)}.")

        auth = auth or AuthDirective()
        request = self.synthesizer.build(method, uri, parameters, auth)
        response = self.engine.dispatch(request, auth.impersonated_user_id)

        if self.ledger is not None:
            logged = {**request.scalar_parameters, **request.file_parameters}
            self.ledger.append(method, uri, logged, auth.impersonated_user_id)
        return response

    def parse_response(self, response: SimulatedResponse) -> FormattedResult:
        return format_response(response)

    def execute(self, method, uri, parameters=None, auth=None) -> FormattedResult:
        return self.parse_response(self.call(method, uri, parameters, auth))

    def history(self, limit: int | None = None) -> list[dict[str, Any]]:
        if self.ledger is None:
            return []
        return self.ledger.load(limit)

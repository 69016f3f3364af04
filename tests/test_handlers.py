import functools

import pytest
from starlette.endpoints import HTTPEndpoint

from api_tester.catalog.handlers import (
    BoundMethod,
    Closure,
    Invokable,
    callable_name,
    resolve_handler,
)
from api_tester.errors import UnresolvedHandler


def module_function():
    """Module level."""


class Controller:
    def show(self):
        """Show."""

    @classmethod
    def build(cls):
        pass


class Items(HTTPEndpoint):
    async def get(self, request):
        """Get items."""


class CallableAction:
    def __call__(self, request):
        """Handle."""


class NotCallable:
    pass


class TestResolveHandler:
    def test_lambda_is_closure(self):
        assert isinstance(resolve_handler(lambda: None), Closure)

    def test_lambda_has_no_entry_point(self):
        ref = resolve_handler(lambda: None)
        assert ref.identity == "Closure"
        assert ref.entry_point() is None

    def test_nested_named_function_is_invokable(self):
        def inner():
            """Nested handler."""

        ref = resolve_handler(inner)
        assert isinstance(ref, Invokable)
        assert ref.identity == f"{__name__}.TestResolveHandler.test_nested_named_function_is_invokable.<locals>.inner"
        assert ref.entry_point() is inner

    def test_bound_method(self):
        ref = resolve_handler(Controller().show)
        assert ref == BoundMethod(owner=Controller, method_name="show")
        assert ref.identity == f"{__name__}.Controller@show"
        assert ref.entry_point() is Controller.show

    def test_classmethod_owner_is_the_class(self):
        ref = resolve_handler(Controller.build)
        assert ref.owner is Controller

    def test_module_function(self):
        ref = resolve_handler(module_function)
        assert isinstance(ref, Invokable)
        assert ref.identity == f"{__name__}.module_function"
        assert ref.entry_point() is module_function

    def test_partial_is_unwrapped(self):
        ref = resolve_handler(functools.partial(module_function))
        assert ref.entry_point() is module_function

    def test_http_endpoint_uses_verb_method(self):
        ref = resolve_handler(Items, "GET")
        assert ref.entry_point() is Items.get
        assert ref.identity == f"{__name__}.Items"

    def test_http_endpoint_without_verb_fails(self):
        with pytest.raises(UnresolvedHandler):
            resolve_handler(Items, "POST")

    def test_callable_instance(self):
        ref = resolve_handler(CallableAction())
        assert ref.entry_point() is CallableAction.__call__
        assert ref.identity == f"{__name__}.CallableAction"

    def test_class_without_entry_point_fails(self):
        with pytest.raises(UnresolvedHandler, match="Invalid route action"):
            resolve_handler(NotCallable)


class TestCallableName:
    def test_class(self):
        assert callable_name(Controller) == "Controller"

    def test_function(self):
        assert callable_name(module_function) == "module_function"

    def test_closure(self):
        assert callable_name(lambda r: r) == "Closure"

"""Resolve a route endpoint into the code unit that documents it."""

import functools
import inspect
from dataclasses import dataclass
from typing import Any, Callable

from starlette.endpoints import HTTPEndpoint

from api_tester.errors import UnresolvedHandler

CLOSURE = "Closure"


@dataclass(frozen=True)
class Closure:
    """An anonymous or inline handler. Nothing to document."""

    @property
    def identity(self) -> str:
        return CLOSURE

    def entry_point(self) -> Callable | None:
        return None


@dataclass(frozen=True)
class BoundMethod:
    """A method bound to a controller instance or class."""

    owner: type
    method_name: str

    @property
    def identity(self) -> str:
        return f"{_qualified(self.owner)}@{self.method_name}"

    def entry_point(self) -> Callable | None:
        return getattr(self.owner, self.method_name)


@dataclass(frozen=True)
class Invokable:
    """A function, endpoint class or callable object with one entry point."""

    target: Any
    entry: Callable

    @property
    def identity(self) -> str:
        target = self.target
        if not (inspect.isfunction(target) or inspect.isclass(target)):
            target = type(target)
        return _qualified(target)

    def entry_point(self) -> Callable | None:
        return self.entry


HandlerRef = Closure | BoundMethod | Invokable


def is_closure(obj: Any) -> bool:
    """True for lambdas. Named nested functions are ordinary handlers."""
    return inspect.isfunction(obj) and obj.__name__ == "<lambda>"


def callable_name(obj: Any) -> str:
    """Display name of a middleware or dependency callable."""
    if is_closure(obj):
        return CLOSURE
    if isinstance(obj, functools.partial):
        return callable_name(obj.func)
    if inspect.isfunction(obj) or inspect.isclass(obj) or inspect.ismethod(obj):
        return obj.__qualname__
    return type(obj).__qualname__


def resolve_handler(endpoint: Any, method: str = "GET") -> HandlerRef:
    """Map a route endpoint to a HandlerRef.

    Raises UnresolvedHandler when the endpoint has no invocation entry point.
    """
    while isinstance(endpoint, functools.partial):
        endpoint = endpoint.func

    if is_closure(endpoint):
        return Closure()

    if inspect.ismethod(endpoint):
        owner = endpoint.__self__
        if not inspect.isclass(owner):
            owner = type(owner)
        return BoundMethod(owner=owner, method_name=endpoint.__name__)

    if inspect.isfunction(endpoint):
        return Invokable(target=endpoint, entry=endpoint)

    if inspect.isclass(endpoint) and issubclass(endpoint, HTTPEndpoint):
        entry = getattr(endpoint, method.lower(), None)
        if entry is None:
            raise UnresolvedHandler(
                f"Invalid route action: [{_qualified(endpoint)}] has no {method.lower()}() handler."
            )
        return Invokable(target=endpoint, entry=entry)

    cls = endpoint if inspect.isclass(endpoint) else type(endpoint)
    if not any("__call__" in vars(klass) for klass in cls.__mro__ if klass is not object):
        raise UnresolvedHandler(f"Invalid route action: [{_qualified(cls)}].")
    return Invokable(target=endpoint, entry=cls.__call__)


def _qualified(obj: Any) -> str:
    return f"{obj.__module__}.{obj.__qualname__}"

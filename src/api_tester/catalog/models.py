"""Data models for the route catalog.

Descriptors are computed fresh on every listing and never cached.
"""

from typing import Literal

from pydantic import BaseModel

HttpMethod = Literal["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH"]

# Order matters: a route accepting several verbs is listed under the first one found.
METHODS: tuple[str, ...] = ("GET", "HEAD", "POST", "PUT", "DELETE", "PATCH")

METHOD_COLORS: dict[str, str] = {
    "GET": "success",
    "HEAD": "secondary",
    "POST": "primary",
    "PUT": "warning",
    "DELETE": "danger",
    "PATCH": "info",
}


class ParameterDescriptor(BaseModel):
    """One documented parameter of a route handler."""

    name: str
    attributes: dict[str, str] = {}  # description, required, type, default, ...

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.attributes.get(key, default)

    def as_dict(self) -> dict[str, str]:
        return {"name": self.name, **self.attributes}


class RouteDescriptor(BaseModel):
    """A single API route as shown in the listing."""

    host: str | None = None
    method: HttpMethod
    uri: str  # /api/users/{id}
    name: str | None = None
    handler: str  # module.Owner@method / module.func / Closure
    middleware: list[str] = []
    parameters: list[ParameterDescriptor] = []

    @property
    def accent(self) -> str:
        return METHOD_COLORS[self.method]

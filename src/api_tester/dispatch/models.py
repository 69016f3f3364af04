"""Value objects for one simulated call."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class NoAuth(BaseModel):
    kind: Literal["no_auth"] = "no_auth"


class BasicAuth(BaseModel):
    kind: Literal["basic_auth"] = "basic_auth"
    username: str = ""
    password: str = ""


class BearerToken(BaseModel):
    kind: Literal["bearer_token"] = "bearer_token"
    token: str = ""


AuthMode = Annotated[NoAuth | BasicAuth | BearerToken, Field(discriminator="kind")]

AUTH_TYPES = [
    {"value": "no_auth", "title": "No Auth", "select": True},
    {"value": "basic_auth", "title": "Basic Auth", "select": False},
    {"value": "bearer_token", "title": "Bearer Token", "select": False},
]


class AuthDirective(BaseModel):
    """How the simulated request authenticates, and who it acts as."""

    mode: AuthMode = Field(default_factory=NoAuth)
    impersonated_user_id: str | None = None

    @classmethod
    def from_form(cls, form: dict[str, Any]) -> "AuthDirective":
        """Build from the tester form fields. Missing credentials become ''."""

        def field(key: str) -> str:
            value = form.get(key)
            return "" if value is None else str(value)

        auth_type = form.get("auth_type") or "no_auth"
        if auth_type == "basic_auth":
            mode = BasicAuth(username=field("basic_auth_username"), password=field("basic_auth_password"))
        elif auth_type == "bearer_token":
            mode = BearerToken(token=field("bearer_token_token"))
        else:
            mode = NoAuth()

        user = form.get("user")
        return cls(mode=mode, impersonated_user_id=str(user) if user not in (None, "") else None)


class UploadedFile(BaseModel):
    """A file payload. A non-zero ``error`` marks a failed upload."""

    filename: str
    content: bytes = b""
    content_type: str = "application/octet-stream"
    error: int = 0


class SyntheticRequest(BaseModel):
    method: str
    url: str
    scalar_parameters: dict[str, Any] = {}
    file_parameters: dict[str, list[UploadedFile]] = {}
    headers: dict[str, str] = {}


class SimulatedResponse(BaseModel):
    status_code: int
    status_text: str
    headers: dict[str, list[str]] = {}
    cookies: list[dict[str, Any]] = []
    raw_body: str = ""
    content_type: str = ""

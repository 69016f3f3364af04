"""Request synthesizer: turns a method, URI and parameters into a SyntheticRequest."""

import base64
from collections.abc import Iterable, Mapping
from typing import Any

from api_tester.dispatch.models import (
    AuthDirective,
    BasicAuth,
    BearerToken,
    SyntheticRequest,
    UploadedFile,
)

ACCEPT_JSON = {"Accept": "application/json"}


class RequestSynthesizer:
    """Builds requests against the app's base URL. Never opens a connection."""

    def __init__(self, base_url: str = "http://localhost"):
        self.base_url = base_url

    def build(
        self,
        method: str,
        uri: str,
        parameters: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        auth: AuthDirective | None = None,
    ) -> SyntheticRequest:
        scalars, files = split_parameters(parameters or {})
        return SyntheticRequest(
            method=method.upper(),
            url=self.prepare_url(uri),
            scalar_parameters=scalars,
            file_parameters=files,
            headers=auth_headers(auth or AuthDirective()),
        )

    def prepare_url(self, uri: str) -> str:
        """Turn the given URI into a fully qualified URL."""
        if uri.startswith("/"):
            uri = uri[1:]
        if not uri.startswith("http"):
            uri = self.base_url.rstrip("/") + "/" + uri
        return uri.strip("/")


def split_parameters(parameters) -> tuple[dict[str, Any], dict[str, list[UploadedFile]]]:
    """Separate uploads from scalar values. Later duplicates win."""
    items = parameters.items() if isinstance(parameters, Mapping) else parameters
    scalars: dict[str, Any] = {}
    files: dict[str, list[UploadedFile]] = {}

    for name, value in items:
        uploads = _as_uploads(value)
        if uploads is None:
            files.pop(name, None)
            scalars[name] = value
            continue
        scalars.pop(name, None)
        valid = [upload for upload in uploads if upload.error == 0]
        if valid:
            files[name] = valid
        else:
            files.pop(name, None)

    return scalars, files


def auth_headers(auth: AuthDirective) -> dict[str, str]:
    headers = dict(ACCEPT_JSON)
    mode = auth.mode
    if isinstance(mode, BasicAuth):
        credentials = f"{mode.username}:{mode.password}".encode()
        headers["Authorization"] = "Basic " + base64.b64encode(credentials).decode("ascii")
    elif isinstance(mode, BearerToken):
        headers["Authorization"] = "Bearer " + mode.token
    return headers


def _as_uploads(value: Any) -> list[UploadedFile] | None:
    if isinstance(value, UploadedFile):
        return [value]
    if isinstance(value, (list, tuple)) and value and all(isinstance(v, UploadedFile) for v in value):
        return list(value)
    return None

"""Response formatter: normalizes a SimulatedResponse for display."""

import json
from typing import Any, Literal

from pydantic import BaseModel, Field

from api_tester.dispatch.models import SimulatedResponse

DEFAULT_MESSAGE = "success"


class Status(BaseModel):
    code: int
    text: str


class FormattedResult(BaseModel):
    """Display payload. Dump with ``by_alias=True`` for the wire field names."""

    headers_json: str = Field(serialization_alias="headers")
    cookies_json: str = Field(serialization_alias="cookies")
    content: str
    language: Literal["json", "html"] = "json"
    message: str = DEFAULT_MESSAGE
    status: Status


def format_response(response: SimulatedResponse) -> FormattedResult:
    content = response.raw_body
    message = DEFAULT_MESSAGE

    try:
        data = json.loads(content)
    except ValueError:
        pass
    else:
        content = _pretty(data)
        message = _message(data)

    return FormattedResult(
        headers_json=_pretty(response.headers),
        cookies_json=_pretty(response.cookies),
        content=content,
        language="html" if "html" in response.content_type.lower() else "json",
        message=message,
        status=Status(code=response.status_code, text=response.status_text),
    )


def _message(data: Any) -> str:
    if not isinstance(data, dict) or not data.get("message"):
        return DEFAULT_MESSAGE
    message = data["message"]
    return message if isinstance(message, str) else json.dumps(message, ensure_ascii=False)


def _pretty(data: Any) -> str:
    return json.dumps(data, indent=4, ensure_ascii=False)

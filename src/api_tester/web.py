"""HTTP surface of the API tester, mountable into the host FastAPI app.

    app.include_router(build_router())

The host application is taken from ``request.app``, so the tester always
lists and calls the routes of the app it is mounted in.
"""

import logging
import re
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from api_tester.catalog.models import METHOD_COLORS
from api_tester.config import Settings
from api_tester.dispatch.models import AuthDirective, UploadedFile
from api_tester.errors import InvalidInvocation
from api_tester.tester import ApiTester

logger = logging.getLogger(__name__)

FORM_FIELDS = (
    "method",
    "uri",
    "user",
    "auth_type",
    "basic_auth_username",
    "basic_auth_password",
    "bearer_token_token",
)
PAIR_FIELD = re.compile(r"^(key|val)\[(\w*)\]$")
UPLOAD_ERR_NO_FILE = 4


def build_router(settings: Settings | None = None) -> APIRouter:
    settings = settings or Settings()
    router = APIRouter(prefix=settings.mount_path, tags=["api-tester"])

    @router.get("")
    def index(request: Request, sort: str | None = Query(None, alias="_sort")) -> dict[str, Any]:
        tester = ApiTester(request.app, settings)
        try:
            routes = tester.routes(sort=sort)
        except InvalidInvocation as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return {
            "routes": [route.model_dump() for route in routes],
            "auth_types": tester.auth_types(),
            "method_colors": METHOD_COLORS,
            "logs": tester.history(),
        }

    @router.post("/handle")
    async def handle(request: Request) -> dict[str, Any]:
        form = await request.form()
        fields = {name: form.get(name) for name in FORM_FIELDS}
        parameters = await collect_parameters(form.multi_items())

        tester = ApiTester(request.app, settings)
        try:
            result = await run_in_threadpool(
                tester.execute,
                fields["method"],
                fields["uri"],
                parameters,
                AuthDirective.from_form(fields),
            )
        except InvalidInvocation as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except Exception as e:
            logger.exception("API call failed: %s", e)
            raise
        return result.model_dump(by_alias=True)

    return router


async def collect_parameters(items: list[tuple[str, Any]]) -> list[tuple[str, Any]]:
    """Pair up ``key[i]``/``val[i]`` form fields in index order, dropping empty keys."""
    keys: dict[str, Any] = {}
    vals: dict[str, Any] = {}
    for field, value in items:
        match = PAIR_FIELD.match(field)
        if not match:
            continue
        if isinstance(value, UploadFile):
            value = await _read_upload(value)
        target = keys if match.group(1) == "key" else vals
        target[match.group(2)] = value

    return [
        (keys[index], vals.get(index))
        for index in sorted(keys, key=_index_order)
        if isinstance(keys[index], str) and keys[index] != ""
    ]


async def _read_upload(upload: UploadFile) -> UploadedFile:
    content = await upload.read()
    return UploadedFile(
        filename=upload.filename or "",
        content=content,
        content_type=upload.content_type or "application/octet-stream",
        error=UPLOAD_ERR_NO_FILE if not upload.filename and not content else 0,
    )


def _index_order(index: str) -> tuple[int, int, str]:
    if index.isdigit():
        return (0, int(index), "")
    return (1, 0, index)

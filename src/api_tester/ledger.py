"""Invocation ledger: an append-only file of past simulated calls.

Each call is written as a JSON object followed by a comma; reading wraps the
accumulated fragments in brackets and parses them as one array. The file is
never rotated, so treat it as a debug aid.
"""

import json
import logging
from pathlib import Path
from typing import Any

from api_tester.dispatch.models import UploadedFile
from api_tester.errors import LedgerIOFailure

logger = logging.getLogger(__name__)


class InvocationLedger:
    """Records simulated calls. Read and write failures are logged, never raised."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def append(self, method: str, uri: str, parameters: dict[str, Any] | None = None, user: str | None = None) -> None:
        record = {
            "method": method,
            "uri": uri,
            "parameters": {name: _loggable(value) for name, value in (parameters or {}).items()},
            "user": user,
        }
        try:
            self._write(json.dumps(record, ensure_ascii=False) + ",")
        except LedgerIOFailure as e:
            logger.error("Failed to write API tester ledger: %s", e)

    def load(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Return recorded calls, newest first."""
        try:
            history = self._read()
        except LedgerIOFailure as e:
            logger.error("Failed to read API tester ledger: %s", e)
            return []

        history.reverse()
        if limit is not None:
            history = history[:limit]
        for item in history:
            item["parameters"] = format_parameters(item.get("parameters"))
        return history

    def _write(self, fragment: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write(fragment)
        except OSError as e:
            raise LedgerIOFailure(f"{self.path}: {e}") from e

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = self.path.read_text(encoding="utf-8")
            history = json.loads("[" + data.strip().strip(",") + "]")
        except (OSError, ValueError) as e:
            raise LedgerIOFailure(f"{self.path}: {e}") from e
        if not all(isinstance(item, dict) for item in history):
            raise LedgerIOFailure(f"{self.path}: unexpected record layout")
        return history


def format_parameters(parameters: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Reshape ``{name: value}`` into the ``[{name, defaultValue}]`` display list."""
    if not parameters or not isinstance(parameters, dict):
        return []
    return [{"name": name, "defaultValue": value} for name, value in parameters.items()]


def _loggable(value: Any) -> Any:
    if isinstance(value, UploadedFile):
        return value.filename
    if isinstance(value, (list, tuple)):
        return [_loggable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)

"""Settings for the API tester, loaded from YAML."""

import importlib
from pathlib import Path

import yaml
from pydantic import BaseModel

SECTION = "api_tester"


class Settings(BaseModel):
    """Runtime options shared by the catalog, dispatcher, ledger and web surface."""

    prefix: str = "api"
    guard: str = "api"
    user_retriever: str | None = None  # "module:attr"
    base_url: str = "http://localhost"
    ledger_path: Path | None = None
    mount_path: str = "/admin/api-tester"


def load_settings(path: Path | None = None, **overrides) -> Settings:
    """Load settings from a YAML file, then apply non-None overrides.

    The file may hold the options at the top level or under an
    ``api_tester:`` section.
    """
    data: dict = {}
    if path is not None:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if isinstance(data.get(SECTION), dict):
            data = data[SECTION]

    data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)


def import_object(path: str):
    """Resolve a ``module:attr`` import string (dotted attrs allowed)."""
    module_name, sep, attr_path = path.partition(":")
    if not sep or not module_name or not attr_path:
        raise ImportError(f"Import string must look like 'module:attr', got {path!r}")

    obj = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise ImportError(f"Attribute {attr!r} not found in {path!r}") from e
    return obj

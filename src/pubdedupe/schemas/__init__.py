"""JSON schemas shipped with pubdedupe."""

import json
from functools import cache
from importlib import resources
from typing import Any

__all__ = ["SCHEMA_NAMES", "load_schema"]

SCHEMA_NAMES: tuple[str, ...] = ("record", "log_event", "run_manifest")


@cache
def load_schema(name: str) -> dict[str, Any]:
    """Load a bundled schema by short name (e.g. "record").

    Raises
    ------
    ValueError
        If the name is not one of ``SCHEMA_NAMES``.
    """
    if name not in SCHEMA_NAMES:
        raise ValueError(f"Unknown schema: {name}. Expected one of {', '.join(SCHEMA_NAMES)}")
    text = resources.files(__name__).joinpath(f"{name}.schema.json").read_text(encoding="utf-8")
    return json.loads(text)

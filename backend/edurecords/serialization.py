"""Indented JSON rendering shared by every record type."""

import json
from typing import Any

from .config import settings


def to_indented_json(obj: Any) -> str:
    """Render a record (anything with `to_dict`) or plain data as indented JSON.

    Output is deterministic: dictionaries keep insertion order and values
    that JSON does not know natively fall back to `str`.
    """
    payload = obj.to_dict() if hasattr(obj, 'to_dict') else obj
    return json.dumps(payload, ensure_ascii=True, indent=settings.JSON_INDENT, default=str)

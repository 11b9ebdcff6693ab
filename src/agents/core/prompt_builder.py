"""
Template filling for LLM prompts. Callers own the template text; this only
substitutes `{name}` placeholders. Literal braces in a template are written
doubled (`{{` / `}}`); substituted values are inserted as-is.
"""

from __future__ import annotations

import json
from typing import Any


class _BlankMissing(dict):
    def __missing__(self, key: str) -> str:
        return ""


def as_json_block(value: Any) -> str:
    """Pretty JSON (2-space indent) for embedding structured data in a prompt."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def build_from_template(template: str, **kwargs: Any) -> str:
    """
    Fill a template with keyword arguments. Unknown placeholders render empty
    and None values render as "".
    """
    if not template:
        return ""
    values = {k: ("" if v is None else v) for k, v in kwargs.items()}
    return template.format_map(_BlankMissing(values))

"""
Tolerant readers for extraction records and narratives.

Extraction output arrives as dicts (camelCase or snake_case keys) or as an
ExtractedRecord. Any section may be missing or the wrong shape; readers
here return empty values instead of raising.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_DATE_PARSE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%d %B %Y",
)

_CAMEL_BOUNDARY = re.compile(r"_([a-z])")


def _camel(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), name)


# ---------------------------------------------------------------------------
# RECORD ACCESS
# ---------------------------------------------------------------------------


def as_mapping(data: Any) -> Mapping[str, Any]:
    """Extraction data as a mapping; anything unusable becomes {}."""
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_none=True)
    if isinstance(data, Mapping):
        return data
    return {}


def get_value(data: Any, name: str) -> Any:
    """Read a snake_case field, falling back to its camelCase key."""
    if not isinstance(data, Mapping):
        return None
    value = data.get(name)
    if value is None:
        value = data.get(_camel(name))
    return value


def get_section(data: Any, name: str) -> Mapping[str, Any]:
    section = get_value(data, name)
    return section if isinstance(section, Mapping) else {}


def get_items(data: Any, name: str) -> list[Any]:
    """
    List-valued section, in either shape extractors produce:
        {"medications": {"medications": [...]}}  or  {"medications": [...]}
    """
    section = get_value(data, name)
    if isinstance(section, Mapping):
        section = section.get(name)
    return list(section) if isinstance(section, (list, tuple)) else []


def item_name(item: Any, *keys: str) -> str | None:
    """Display name of a list entry: the item itself if a string, else the first present key."""
    if isinstance(item, str):
        return item.strip() or None
    if isinstance(item, Mapping):
        for key in keys or ("name",):
            value = item.get(key)
            if value:
                return str(value)
    return None


def serialize_narrative(narrative: Any) -> str:
    """Narrative as searchable text. None becomes ""."""
    if narrative is None:
        return ""
    if isinstance(narrative, str):
        return narrative
    if isinstance(narrative, BaseModel):
        return narrative.model_dump_json()
    return json.dumps(narrative, ensure_ascii=False, default=str)


# ---------------------------------------------------------------------------
# DATES
# ---------------------------------------------------------------------------


def parse_date(value: Any) -> date | None:
    """Best-effort calendar date; None when the value cannot be read as one."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    for fmt in _DATE_PARSE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def date_formats(value: Any) -> list[str]:
    """
    Literal renderings of a date as it may appear in notes:
    MM/DD/YYYY, M/D/YYYY, YYYY-MM-DD, "Month D, YYYY".

    Unparseable input falls back to its own text.
    """
    parsed = parse_date(value)
    if parsed is None:
        return [str(value)]
    return [
        f"{parsed.month:02d}/{parsed.day:02d}/{parsed.year}",
        f"{parsed.month}/{parsed.day}/{parsed.year}",
        parsed.isoformat(),
        f"{MONTH_NAMES[parsed.month - 1]} {parsed.day}, {parsed.year}",
    ]

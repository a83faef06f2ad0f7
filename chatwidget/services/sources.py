"""
Citation parsing for assistant replies.

The upstream attaches sources in several shapes: a list of objects, a list of
strings, a single object, or one free-text string with titles in quotes.
"""

import re
from typing import Any, List, Optional

from chatwidget.models.schemas import SourceRef

_QUOTES = re.compile(r'["“”]')


def _as_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _first(entry: dict, *keys: str) -> Optional[str]:
    for key in keys:
        text = _as_text(entry.get(key))
        if text:
            return text
    return None


def _from_object(entry: dict) -> SourceRef:
    return SourceRef(
        title=_first(entry, "title", "name", "page") or "",
        url=_first(entry, "url", "link"),
        page=_first(entry, "page", "pageNumber"),
    )


def _from_string(entry: str) -> SourceRef:
    # "Page 1Giriş" style entries double as the page label
    return SourceRef(title=entry, page=entry if "Page" in entry else None)


def parse_sources(source_data: Any) -> Optional[List[SourceRef]]:
    """Turn any known upstream source shape into a list of ``SourceRef``."""
    if not source_data:
        return None

    if isinstance(source_data, list):
        refs = []
        for entry in source_data:
            if isinstance(entry, str):
                refs.append(_from_string(entry))
            elif isinstance(entry, dict):
                refs.append(_from_object(entry))
        return refs or None

    if isinstance(source_data, dict):
        return [_from_object(source_data)]

    if isinstance(source_data, str):
        parts = [part.strip() for part in _QUOTES.split(source_data) if part.strip()]
        if parts:
            return [SourceRef(title=part) for part in parts]
        return [SourceRef(title=source_data)]

    return None

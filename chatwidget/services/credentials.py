"""
Credential handling and per-call identifiers.

Identifier builders take the clock and random source as arguments so they
stay deterministic under test.
"""

import random
import string
import time
from typing import Callable, Optional

API_KEY_PREFIX = "sk_"
API_KEY_MIN_LENGTH = 35

_BASE36 = string.digits + string.ascii_lowercase

Clock = Callable[[], float]


def _millis(clock: Clock) -> int:
    return int(round(clock() * 1000))


def random_suffix(rng: Optional[random.Random] = None, length: int = 9) -> str:
    rng = rng or random.Random()
    return "".join(rng.choice(_BASE36) for _ in range(length))


def make_visitor_id(
    clock: Clock = time.time,
    rng: Optional[random.Random] = None,
    scope: Optional[str] = None,
) -> str:
    """``visitor-<ms>-<rand>``, or ``visitor-<scope>-<ms>-<rand>`` for a widget session."""
    parts = ["visitor"]
    if scope:
        parts.append(scope)
    parts.append(str(_millis(clock)))
    parts.append(random_suffix(rng))
    return "-".join(parts)


def make_probe_id(prefix: str, clock: Clock = time.time) -> str:
    """Identifiers for diagnostic calls, e.g. ``test-visitor-<ms>``."""
    return f"{prefix}-{_millis(clock)}"


def normalize_api_key(key: Optional[str]) -> str:
    """Trim the key and drop a pasted ``Bearer `` prefix."""
    trimmed = (key or "").strip()
    if trimmed.startswith("Bearer "):
        return trimmed[len("Bearer "):].strip()
    return trimmed


def bearer_header(key: str) -> dict:
    return {"Authorization": f"Bearer {normalize_api_key(key)}"}


def has_valid_prefix(key: str) -> bool:
    return key.startswith(API_KEY_PREFIX)


def has_valid_length(key: str) -> bool:
    return len(key) >= API_KEY_MIN_LENGTH


def looks_like_api_key(key: str) -> bool:
    """Format heuristic only; a failing key is still forwarded."""
    return has_valid_prefix(key) and has_valid_length(key)


def key_preview(key: Optional[str]) -> str:
    if not key:
        return "MISSING"
    return f"{key[:12]}..."

"""
Upstream response normalization.

The chat API reports results in several shapes depending on version and
endpoint. ``normalize`` folds all of them into one canonical envelope so
callers only ever handle success or failure.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from loguru import logger

from chatwidget.models.schemas import (
    CanonicalEnvelope,
    FailureEnvelope,
    SuccessData,
    SuccessEnvelope,
)
from chatwidget.services.sources import parse_sources

# Placeholder replies the upstream emits instead of a real answer.
APOLOGY_MARKER = "I apologize"
APOLOGY_PHRASES = [
    "I apologize, but I'm having trouble processing your request right now. Please try again.",
    "I apologize, but I'm having trouble processing your request",
    "having trouble processing your request",
    "trouble processing your request right now",
]
# Array entries are filtered more aggressively.
ARRAY_REJECT_PHRASES = [
    "I apologize, but I'm having trouble processing your request",
    "trouble processing your request",
    "please try again",
    "error occurred",
]

_MARKER_LOOKBACK = len("I apologize, but I'm ")

SUCCESS_TEXT_FIELDS = ("response", "message", "text")
LEGACY_TEXT_FIELDS = ("response", "message", "text", "content", "answer")


@dataclass(frozen=True)
class UpstreamResponse:
    http_status: int
    content_type: str
    raw_body: str
    reason_phrase: str = ""


@dataclass(frozen=True)
class NormalizedResponse:
    ok: bool
    status: int
    payload: CanonicalEnvelope

    def to_dict(self) -> dict:
        return self.payload.to_dict()


Matcher = Callable[[Any, int], Optional[CanonicalEnvelope]]


# ── Helpers ──────────────────────────────────────────────
def _is_2xx(status: int) -> bool:
    return 200 <= status < 300


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _first_text(obj: dict, fields) -> str:
    for field in fields:
        text = _text(obj.get(field))
        if text:
            return text
    return ""


def _code(value: Any) -> str:
    return str(value) if value not in (None, "") else ""


def strip_apology(text: str) -> str:
    """Cut ``text`` at the first canned apology, keeping any valid prefix."""
    lowered = text.lower()
    hits = [lowered.find(p.lower()) for p in APOLOGY_PHRASES]
    hits = [i for i in hits if i >= 0]
    if not hits:
        return text
    cut = min(hits)
    # "I apologize, but I'm having trouble..." starts a little before the hit
    marker = lowered.rfind(APOLOGY_MARKER.lower(), 0, cut + 1)
    if marker >= 0 and cut - marker <= _MARKER_LOOKBACK:
        cut = marker
    return text[:cut].strip()


def _has_apology(text: str) -> bool:
    lowered = text.lower()
    return any(p.lower() in lowered for p in ARRAY_REJECT_PHRASES)


def _success(text: str, source_data: Any = None, usage: Any = None, raw: Any = None):
    return SuccessEnvelope(
        data=SuccessData(
            response=text,
            sources=parse_sources(source_data),
            usage=usage,
            raw=raw,
        )
    )


def _no_response(status: int, details: Any = None) -> FailureEnvelope:
    return FailureEnvelope(
        code="API_ERROR" if _is_2xx(status) else str(status),
        error="No response received from API",
        details=details,
    )


# ── Shape matchers (priority order) ──────────────────────
def match_documented_success(body: Any, status: int) -> Optional[CanonicalEnvelope]:
    if not isinstance(body, dict) or body.get("success") is not True:
        return None
    data = body.get("data")
    if not isinstance(data, dict) or not data:
        return None
    text = _first_text(data, SUCCESS_TEXT_FIELDS)
    if not text:
        return _no_response(status, details=data)
    return _success(text, data.get("sources") or data.get("source"), usage=data.get("usage"))


def match_documented_failure(body: Any, status: int) -> Optional[CanonicalEnvelope]:
    if not isinstance(body, dict) or body.get("success") is not False:
        return None
    error = body.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    return FailureEnvelope(
        code=_code(body.get("code")) or str(status),
        error=_text(error) or _text(body.get("message")) or "Unknown error",
        details=body.get("details"),
    )


def match_error_field(body: Any, status: int) -> Optional[CanonicalEnvelope]:
    if not isinstance(body, dict) or not body.get("error"):
        return None
    error = body["error"]
    nested = error if isinstance(error, dict) else {}
    code = _code(body.get("code")) or _code(nested.get("code")) or str(status)
    message = (
        _text(body.get("message"))
        or _text(nested.get("message"))
        or _text(error)
        or "Unknown error"
    )
    return FailureEnvelope(
        code=code,
        error=message,
        details=body.get("details") or nested or None,
    )


def match_flat_error(body: Any, status: int) -> Optional[CanonicalEnvelope]:
    if not isinstance(body, dict):
        return None
    if not body.get("code") and not body.get("message"):
        return None
    return FailureEnvelope(
        code=_code(body.get("code")) or str(status),
        error=_text(body.get("message")) or "Unknown error",
        details=body,
    )


def match_legacy_object(body: Any, status: int) -> Optional[CanonicalEnvelope]:
    if not isinstance(body, dict):
        return None
    text = strip_apology(_first_text(body, LEGACY_TEXT_FIELDS))
    if _is_2xx(status) and text:
        return _success(text, body.get("sources") or body.get("source"), raw=body)
    if not _is_2xx(status):
        return FailureEnvelope(code=str(status), error=text or "Unknown error", details=body)
    return _no_response(status, details=body)


def _entry_text(entry: Any) -> str:
    if isinstance(entry, str):
        return entry.strip()
    if isinstance(entry, dict):
        return _first_text(entry, LEGACY_TEXT_FIELDS)
    return ""


def match_array(body: Any, status: int) -> Optional[CanonicalEnvelope]:
    if not isinstance(body, list):
        return None
    valid = [e for e in body if _entry_text(e) and not _has_apology(_entry_text(e))]
    if not valid:
        return _no_response(status, details=body)
    chosen = valid[0]
    text = _entry_text(chosen)
    if not _is_2xx(status):
        return FailureEnvelope(code=str(status), error=text, details=body)
    sources = None
    if isinstance(chosen, dict):
        sources = chosen.get("sources") or chosen.get("source")
    return _success(text, sources, raw=body)


MATCHERS: List[Matcher] = [
    match_documented_success,
    match_documented_failure,
    match_error_field,
    match_flat_error,
    match_legacy_object,
    match_array,
]


# ── Entry points ─────────────────────────────────────────
def classify(body: Any, status: int) -> CanonicalEnvelope:
    """Run the matcher chain over an already-parsed JSON body."""
    for matcher in MATCHERS:
        envelope = matcher(body, status)
        if envelope is not None:
            logger.debug(f"Upstream shape matched by {matcher.__name__}")
            return envelope
    # Scalars (a bare JSON string or number) carry nothing we can use
    return FailureEnvelope(
        code="INVALID_RESPONSE" if _is_2xx(status) else str(status),
        error=_text(body) or "Unknown error",
        details=body,
    )


def outward_status(envelope: CanonicalEnvelope, upstream_status: int) -> int:
    """A failure reported under a 2xx status is surfaced as 400."""
    if isinstance(envelope, FailureEnvelope) and _is_2xx(upstream_status):
        return 400
    return upstream_status


def _looks_like_json(content_type: str, raw_body: str) -> bool:
    stripped = raw_body.strip()
    return "application/json" in content_type.lower() or stripped.startswith(("{", "["))


def _finish(envelope: CanonicalEnvelope, upstream_status: int) -> NormalizedResponse:
    return NormalizedResponse(
        ok=isinstance(envelope, SuccessEnvelope),
        status=outward_status(envelope, upstream_status),
        payload=envelope,
    )


def _reject_constant(name: str):
    # NaN and Infinity are not JSON and cannot be re-serialized
    raise ValueError(f"Invalid JSON constant {name}")


def _status_line(upstream: UpstreamResponse) -> str:
    if upstream.reason_phrase:
        return f"HTTP {upstream.http_status}: {upstream.reason_phrase}"
    return f"HTTP {upstream.http_status}"


def normalize(upstream: UpstreamResponse) -> NormalizedResponse:
    """Map a raw upstream response onto the canonical envelope."""
    status = upstream.http_status
    raw = upstream.raw_body or ""

    if not _looks_like_json(upstream.content_type or "", raw):
        envelope = FailureEnvelope(
            code="INVALID_RESPONSE",
            error=raw or _status_line(upstream),
        )
        return _finish(envelope, status)

    try:
        body = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        logger.warning(f"Upstream body is not valid JSON: {e}")
        envelope = FailureEnvelope(
            code="PARSE_ERROR",
            error=f"Failed to parse response: {e}",
            details=str(e),
        )
        return _finish(envelope, status or 500)

    return _finish(classify(body, status), status)

"""
Error code → user-facing message mapping for the chat widget.

Texts are Azerbaijani, the widget's display language. Unknown codes fall back
to the upstream message.
"""

import json
from typing import Optional, Tuple

GENERIC_ERROR = "Xəta baş verdi. Zəhmət olmasa yenidən cəhd edin."

INVALID_KEY = "API açarı yanlışdır və ya təyin edilməyib."
KEY_NOT_ALLOWED = "API açarı bu köməkçi üçün icazə verilmir."
ASSISTANT_NOT_FOUND = "Köməkçi tapılmadı. Assistant ID-ni yoxlayın."
MISSING_FIELDS = "Tələb olunan sahələr çatışmır."
RATE_LIMITED = "Sürət limiti aşılıb. Zəhmət olmasa bir az gözləyin."
SERVER_ERROR = (
    "Server tərəfində xəta baş verdi. Bu, xarici API serverində problem olduğunu "
    "göstərir. Zəhmət olmasa daha sonra yenidən cəhd edin və ya API serverinin "
    "loglarını yoxlayın."
)
KEY_NOT_CONFIGURED = "API açarı təyin edilməyib. Zəhmət olmasa .env faylını yoxlayın."
ENDPOINT_NOT_FOUND = "API endpoint tapılmadı. Zəhmət olmasa API URL-i yoxlayın."
KEY_REJECTED = "API açarı yanlışdır və ya icazə yoxdur."
FUNCTION_FAILED = (
    "Server tərəfində xəta baş verdi. Bu, xarici API serverində problem olduğunu göstərir."
)
CONNECTION_FAILED = (
    "Serverə bağlanıla bilmədi. İnternet bağlantınızı və ya server statusunu yoxlayın."
)

ERROR_MESSAGES = {
    "MISSING_AUTH": INVALID_KEY,
    "INVALID_API_KEY": INVALID_KEY,
    "UNAUTHORIZED": KEY_NOT_ALLOWED,
    "403": KEY_NOT_ALLOWED,
    "ASSISTANT_NOT_FOUND": ASSISTANT_NOT_FOUND,
    "404": ASSISTANT_NOT_FOUND,
    "MISSING_FIELDS": MISSING_FIELDS,
    "400": MISSING_FIELDS,
    "RATE_LIMIT_EXCEEDED": RATE_LIMITED,
    "429": RATE_LIMITED,
    "500": SERVER_ERROR,
}

# Checked in order against the raw message when no code matched.
MESSAGE_HEURISTICS = [
    ("500", SERVER_ERROR),
    ("API key", KEY_NOT_CONFIGURED),
    ("MISSING_AUTH", KEY_NOT_CONFIGURED),
    ("404", ENDPOINT_NOT_FOUND),
    ("401", KEY_REJECTED),
    ("429", RATE_LIMITED),
    ("FUNCTION_INVOCATION_FAILED", FUNCTION_FAILED),
    ("Failed to fetch", CONNECTION_FAILED),
    ("Failed to connect", CONNECTION_FAILED),
]


def _unwrap_json(code: str, message: str) -> Tuple[str, str]:
    """Messages sometimes carry a JSON-encoded error; pull code/message out."""
    if not message.startswith(("{", '"')):
        return code, message
    try:
        parsed = json.loads(message)
    except ValueError:
        return code, message
    if isinstance(parsed, dict):
        inner = parsed.get("message") or parsed.get("error") or message
        return str(parsed.get("code") or code), inner if isinstance(inner, str) else message
    if isinstance(parsed, str):
        return code, parsed
    return code, message


def user_message(code: Optional[str], message: Optional[str]) -> str:
    """Return the text shown to the visitor for a failed chat turn."""
    code = str(code or "")
    message = message or ""
    if not code and not message:
        return GENERIC_ERROR

    code, parsed_message = _unwrap_json(code, message)

    if code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]
    if "server error" in parsed_message.lower():
        return SERVER_ERROR
    for needle, text in MESSAGE_HEURISTICS:
        if needle in message:
            return text

    return parsed_message or GENERIC_ERROR

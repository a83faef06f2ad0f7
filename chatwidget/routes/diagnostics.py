"""
Setup diagnostics: probe the upstream chat API with a caller-supplied key.

These endpoints report what the upstream said instead of normalizing it, so an
integrator can see exactly why a key or assistant id is rejected.
"""

import json
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger

from chatwidget.config import Settings, settings
from chatwidget.models.schemas import CheckResult, DiagnosticChatRequest, VerifySummary
from chatwidget.routes.chat import failure_response
from chatwidget.services.credentials import (
    API_KEY_MIN_LENGTH,
    has_valid_length,
    has_valid_prefix,
    key_preview,
    make_probe_id,
)
from chatwidget.services.upstream import (
    chat_payload,
    get_http_client,
    post_chat,
    rate_limit_headers,
)

router = APIRouter(prefix="/api", tags=["diagnostics"])

DEFAULT_CHAT_API_URL = Settings.model_fields["CHAT_API_URL"].default


def _parse_body(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return {"raw": text}


def extract_error_message(data: Any) -> str:
    """Best-effort error text from nested, string or flat upstream error shapes."""
    if not isinstance(data, dict):
        return "Unknown error"
    error = data.get("error")
    if error:
        if isinstance(error, str):
            return error
        if isinstance(error, dict):
            if error.get("message"):
                return str(error["message"])
            if error.get("code"):
                return f"{error['code']}: Server error"
        return "Unknown error"
    if data.get("message"):
        return str(data["message"])
    return "Unknown error"


def _error_code(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if data.get("code"):
        return str(data["code"])
    if isinstance(error, dict) and error.get("code"):
        return str(error["code"])
    return None


def _key_report(api_key: str) -> dict:
    return {
        "format": "VALID" if has_valid_prefix(api_key) else "INVALID",
        "length": len(api_key),
        "preview": key_preview(api_key),
    }


# ── POST /api/test-chat ──────────────────────────────────
@router.post("/test-chat")
async def run_test_chat(
    req: DiagnosticChatRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Send one test message and return the raw exchange."""
    if not req.assistant or not req.api_key:
        return failure_response(
            400,
            "MISSING_FIELDS",
            "Missing required fields: assistant and apiKey are required",
        )

    url = settings.CHAT_API_URL
    payload = chat_payload(req.message, req.assistant, make_probe_id("test-visitor"))
    logger.info(
        f"[Test] Probing {url} assistant={req.assistant!r} "
        f"key format={_key_report(req.api_key)['format']} length={len(req.api_key)}"
    )

    try:
        response = await post_chat(client, payload, req.api_key)
    except httpx.RequestError as e:
        logger.error(f"[Test] Error: {e!r}")
        message = str(e) or type(e).__name__
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": message,
                "code": "TEST_ERROR",
                "diagnostics": {
                    "networkError": True,
                    "parseError": False,
                    "apiError": False,
                    "errorDetails": {"message": message, "type": type(e).__name__},
                },
            },
        )

    body = _parse_body(response.text)
    logger.debug(f"[Test] Raw response: {response.text[:500]}")

    return JSONResponse(
        status_code=200,
        content={
            "success": response.is_success,
            "testResults": {
                "endpoint": url,
                "requestPayload": payload,
                "response": {
                    "status": response.status_code,
                    "statusText": response.reason_phrase,
                    "headers": rate_limit_headers(response),
                    "body": body,
                },
                "apiKey": _key_report(req.api_key),
                "assistant": {"id": req.assistant, "length": len(req.assistant)},
            },
            "diagnostics": {
                "networkError": False,
                "parseError": False,
                "apiError": not response.is_success,
                "errorDetails": None if response.is_success else body,
            },
        },
    )


# ── GET /api/verify-setup ────────────────────────────────
async def _connection_check(client: httpx.AsyncClient, assistant: str, api_key: str) -> CheckResult:
    payload = chat_payload("test", assistant, make_probe_id("verify"))
    try:
        response = await post_chat(client, payload, api_key)
    except httpx.RequestError as e:
        logger.error(f"[Verify Setup] API connection test error: {e!r}")
        return CheckResult(
            name="API Connection Test",
            passed=False,
            message=f"Network error: {str(e) or 'Failed to connect to API'}",
            details={"error": str(e), "errorType": type(e).__name__},
        )

    data = _parse_body(response.text)
    ok = response.is_success
    error_message = "" if ok else extract_error_message(data)
    return CheckResult(
        name="API Connection Test",
        passed=ok,
        message=(
            "API connection successful - Chat endpoint is working"
            if ok
            else f"API returned {response.status_code}: {error_message}"
        ),
        details={
            "status": response.status_code,
            "statusText": response.reason_phrase,
            "success": ok,
            "response": data,
            "errorCode": _error_code(data),
            "errorMessage": error_message,
        },
    )


@router.get("/verify-setup")
async def verify_setup(
    assistant: Optional[str] = None,
    apiKey: Optional[str] = None,
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Run format checks on the key and assistant id, then a live call."""
    if not assistant or not apiKey:
        return failure_response(
            400,
            "MISSING_PARAMS",
            "Missing required query parameters: assistant and apiKey",
        )

    checks = [
        CheckResult(
            name="API Key Format",
            passed=has_valid_prefix(apiKey),
            message="API key format is valid" if has_valid_prefix(apiKey) else "API key should start with sk_",
        ),
        CheckResult(
            name="API Key Length",
            passed=has_valid_length(apiKey),
            message=(
                f"API key length is valid ({len(apiKey)} characters)"
                if has_valid_length(apiKey)
                else f"API key is too short ({len(apiKey)} characters, should be at least {API_KEY_MIN_LENGTH})"
            ),
        ),
        CheckResult(
            name="Assistant ID Format",
            passed=bool(assistant.strip()),
            message="Assistant ID is valid" if assistant.strip() else "Assistant ID is empty",
        ),
    ]
    checks.append(await _connection_check(client, assistant, apiKey))

    passed = sum(1 for check in checks if check.passed)
    all_passed = passed == len(checks)
    summary = VerifySummary(totalTests=len(checks), passed=passed, failed=len(checks) - passed)

    return JSONResponse(
        status_code=200 if all_passed else 400,
        content={
            "success": all_passed,
            "summary": summary.model_dump(by_alias=True),
            "results": {
                "assistant": {
                    "id": assistant,
                    "length": len(assistant),
                    "valid": bool(assistant.strip()),
                },
                "apiKey": {
                    **_key_report(apiKey),
                    "valid": has_valid_prefix(apiKey) and has_valid_length(apiKey),
                },
                "endpoint": {
                    "url": settings.CHAT_API_URL,
                    "configured": settings.CHAT_API_URL != DEFAULT_CHAT_API_URL,
                },
                "tests": [check.model_dump() for check in checks],
            },
        },
    )

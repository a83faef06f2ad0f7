"""
Forwarding of chat requests to the external chat API.

No timeout or retry is applied here; a slow upstream holds the proxy call for
as long as the hosting server allows.
"""

from typing import AsyncIterator, Optional

import httpx
from loguru import logger

from chatwidget.config import settings
from chatwidget.services.credentials import bearer_header, key_preview, looks_like_api_key
from chatwidget.services.normalizer import UpstreamResponse

# Headers worth echoing into logs and diagnostic reports.
RATE_LIMIT_HEADERS = ("x-ratelimit-remaining", "x-ratelimit-reset")


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """FastAPI dependency that yields a request-scoped HTTP client."""
    async with httpx.AsyncClient(timeout=None) as client:
        yield client


def chat_headers(api_key: str) -> dict:
    return {
        "Content-Type": "application/json",
        **bearer_header(api_key),
        "Accept": "application/json",
    }


def chat_payload(message: str, assistant: str, visitor_id: str) -> dict:
    return {
        "message": message.strip(),
        "assistant": assistant.strip(),
        "visitor_id": visitor_id,
    }


def log_outbound(url: str, message: str, assistant: str, visitor_id: Optional[str], api_key: str) -> None:
    preview = message[:50] + ("..." if len(message) > 50 else "")
    logger.info(
        f"[Proxy] POST {url} assistant={assistant!r} visitor={visitor_id} "
        f"message={preview!r} ({len(message)} chars)"
    )
    logger.debug(
        f"[Proxy] api key {key_preview(api_key)} length={len(api_key)} "
        f"format={'valid' if looks_like_api_key(api_key) else 'INVALID (expected sk_ prefix, 35+ chars)'}"
    )


async def post_chat(
    client: httpx.AsyncClient,
    payload: dict,
    api_key: str,
    url: Optional[str] = None,
) -> httpx.Response:
    """Send one chat turn upstream. Transport errors propagate as ``httpx.RequestError``."""
    url = url or settings.CHAT_API_URL
    response = await client.post(url, json=payload, headers=chat_headers(api_key))
    logger.info(
        f"[Proxy] upstream replied {response.status_code} "
        f"content-type={response.headers.get('content-type')!r} "
        f"request-id={response.headers.get('x-request-id')}"
    )
    return response


def to_upstream_response(response: httpx.Response) -> UpstreamResponse:
    return UpstreamResponse(
        http_status=response.status_code,
        content_type=response.headers.get("content-type", ""),
        raw_body=response.text,
        reason_phrase=response.reason_phrase,
    )


def rate_limit_headers(response: httpx.Response) -> dict:
    return {name: response.headers.get(name) for name in ("content-type",) + RATE_LIMIT_HEADERS}

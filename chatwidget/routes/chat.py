"""
Chat proxy endpoint: browser → upstream chat API → canonical envelope.
"""

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger

from chatwidget.config import settings
from chatwidget.models.schemas import ChatProxyRequest, FailureEnvelope
from chatwidget.services.credentials import make_visitor_id
from chatwidget.services.normalizer import normalize
from chatwidget.services.upstream import (
    chat_payload,
    get_http_client,
    log_outbound,
    post_chat,
    to_upstream_response,
)

router = APIRouter(prefix="/api", tags=["chat"])


def failure_response(status_code: int, code: str, error: str, details=None) -> JSONResponse:
    envelope = FailureEnvelope(code=code, error=error, details=details)
    return JSONResponse(status_code=status_code, content=envelope.to_dict())


def _blank(value) -> bool:
    return not value or not value.strip()


@router.post("/chat")
async def chat_proxy(
    req: ChatProxyRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Forward one chat turn upstream and return the normalized result.
    Missing fields are rejected locally without contacting the upstream.
    """
    if _blank(req.message) or _blank(req.assistant) or _blank(req.api_key):
        return failure_response(
            400,
            "MISSING_FIELDS",
            "Missing required fields",
            "message, assistant, and apiKey are required",
        )

    visitor_id = req.visitor_id or make_visitor_id()
    payload = chat_payload(req.message, req.assistant, visitor_id)
    log_outbound(settings.CHAT_API_URL, req.message, req.assistant, req.visitor_id, req.api_key)

    try:
        response = await post_chat(client, payload, req.api_key)
    except httpx.RequestError as e:
        logger.error(f"[Proxy] Network error: {e!r}")
        return failure_response(
            503, "NETWORK_ERROR", "Failed to connect to chat API", str(e) or type(e).__name__
        )

    result = normalize(to_upstream_response(response))
    if result.ok:
        logger.info("[Proxy] ✓ Success response received")
    else:
        logger.warning(
            f"[Proxy] ✗ Error response: code={result.payload.code} "
            f"error={result.payload.message!r} status={result.status}"
        )
    return JSONResponse(status_code=result.status, content=result.to_dict())

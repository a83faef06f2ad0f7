"""
Widget-side chat client for the proxy's ``/api/chat`` endpoint.

Mirrors what the embedded chat window does: one visitor id per session, and
every turn ends in an assistant message. Failures are rendered as text rather
than raised to the caller.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

import httpx
from loguru import logger

from chatwidget.models.schemas import FailureEnvelope, SourceRef
from chatwidget.services.credentials import make_visitor_id
from chatwidget.services.messages import GENERIC_ERROR, user_message
from chatwidget.services.normalizer import classify

MISSING_KEY_MESSAGE = (
    "API key is not configured for this assistant. Please check your .env file."
)


@dataclass
class ChatMessage:
    role: str
    content: str
    sources: Optional[List[SourceRef]] = None
    is_error: bool = False
    timestamp: datetime = field(default_factory=datetime.now)


def _error_from_body(status: int, body: Any) -> tuple:
    """Pull (code, message) from whatever error body the proxy returned."""
    if isinstance(body, str):
        try:
            parsed = json.loads(body)
        except ValueError:
            return "", body
        if isinstance(parsed, dict):
            return str(parsed.get("code") or ""), str(parsed.get("message") or parsed.get("error") or body)
        return "", body
    if not isinstance(body, dict):
        return "", f"HTTP {status}"
    if body.get("code") and body.get("message"):
        return str(body["code"]), str(body["message"])
    if body.get("success") is False:
        error = body.get("error") or body.get("message") or "Unknown error"
        return str(body.get("code") or ""), error if isinstance(error, str) else json.dumps(error)
    if body.get("error"):
        error = body["error"]
        return str(body.get("code") or ""), error if isinstance(error, str) else json.dumps(error)
    if body.get("message"):
        return str(body.get("code") or ""), str(body["message"])
    return "", json.dumps(body, indent=2, ensure_ascii=False)


def reply_from_body(status: int, body: Any) -> ChatMessage:
    """Map one proxy response onto the assistant message shown to the visitor."""
    if not 200 <= status < 300:
        code, message = _error_from_body(status, body)
        logger.error(f"Chat API error response: status={status} code={code!r} message={message!r}")
        return ChatMessage(role="assistant", content=user_message(code, message), is_error=True)

    envelope = classify(body, status)
    if isinstance(envelope, FailureEnvelope):
        logger.error(f"Chat API error envelope: code={envelope.code} error={envelope.message!r}")
        return ChatMessage(
            role="assistant",
            content=user_message(envelope.code, envelope.message),
            is_error=True,
        )

    data = envelope.data
    if data.usage:
        logger.debug(f"API usage: {data.usage}")
    return ChatMessage(
        role="assistant",
        content=data.response_text,
        sources=data.sources,
    )


class ChatSession:
    """One conversation with one assistant through the proxy."""

    def __init__(
        self,
        proxy_url: str,
        assistant_id: str,
        api_key: str,
        api_id: str = "1",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.proxy_url = proxy_url.rstrip("/")
        self.assistant_id = assistant_id
        self.api_key = api_key
        self.visitor_id = make_visitor_id(scope=api_id)
        self.messages: List[ChatMessage] = []
        self._client = client

    async def send(self, text: str) -> Optional[ChatMessage]:
        """Send one user message; returns the assistant reply (or error text)."""
        text = text.strip()
        if not text:
            return None
        self.messages.append(ChatMessage(role="user", content=text))

        reply = await self._exchange(text)
        self.messages.append(reply)
        return reply

    async def _exchange(self, text: str) -> ChatMessage:
        if not self.api_key or not self.api_key.strip():
            return ChatMessage(
                role="assistant", content=user_message("", MISSING_KEY_MESSAGE), is_error=True
            )

        body = {
            "message": text,
            "assistant": self.assistant_id,
            "visitor_id": self.visitor_id,
            "apiKey": self.api_key.strip(),
        }
        try:
            if self._client is not None:
                response = await self._client.post(f"{self.proxy_url}/api/chat", json=body)
            else:
                async with httpx.AsyncClient(timeout=None) as client:
                    response = await client.post(f"{self.proxy_url}/api/chat", json=body)
        except httpx.RequestError as e:
            logger.error(f"Chat request failed: {e!r}")
            return ChatMessage(
                role="assistant",
                content=user_message("", f"Failed to fetch: {e}"),
                is_error=True,
            )

        try:
            payload = response.json()
        except ValueError:
            payload = response.text
        if not response.is_success and isinstance(payload, str) and not payload:
            payload = f"HTTP {response.status_code}: {response.reason_phrase}"

        reply = reply_from_body(response.status_code, payload)
        if not reply.content:
            reply.content = GENERIC_ERROR
        return reply

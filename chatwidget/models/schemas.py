"""
Pydantic request / response schemas for the API.

The canonical envelope is serialized in the upstream's documented shape:
``{"success": true, "data": {"response": ...}}`` on success and
``{"success": false, "code": ..., "error": ...}`` on failure.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Literal, Optional, Union


# ── Canonical envelope ───────────────────────────────────
class SourceRef(BaseModel):
    title: str
    url: Optional[str] = None
    page: Optional[str] = None


class SuccessData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response_text: str = Field(alias="response", min_length=1)
    sources: Optional[List[SourceRef]] = None
    usage: Optional[Any] = None
    raw: Optional[Any] = None


class SuccessEnvelope(BaseModel):
    success: Literal[True] = True
    data: SuccessData

    def to_dict(self) -> dict:
        data = {
            key: value
            for key, value in self.data.model_dump(by_alias=True).items()
            if value is not None
        }
        return {"success": True, "data": data}


class FailureEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: Literal[False] = False
    code: str
    message: str = Field(alias="error")
    details: Optional[Any] = None

    def to_dict(self) -> dict:
        body = {"success": False, "code": self.code, "error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


CanonicalEnvelope = Union[SuccessEnvelope, FailureEnvelope]


# ── Chat proxy ───────────────────────────────────────────
class ChatProxyRequest(BaseModel):
    """Inbound body of ``POST /api/chat``; presence is checked by the route."""

    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    assistant: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    visitor_id: Optional[str] = None


class DiagnosticChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Hello, this is a test message"
    assistant: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")


# ── Diagnostics ──────────────────────────────────────────
class CheckResult(BaseModel):
    name: str
    passed: bool
    message: str
    details: Optional[dict] = None


class VerifySummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_tests: int = Field(alias="totalTests")
    passed: int
    failed: int


# ── Assistants ───────────────────────────────────────────
class AssistantInfo(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    api_id: str
    has_api_key: bool


class EmbedInfo(BaseModel):
    assistant: str
    iframe_url: str
    title: str = "Chat Assistant"

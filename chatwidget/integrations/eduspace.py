"""
EduSpace teacher API client for the developer test console.

Responses are surfaced verbatim: no envelope normalization, just the HTTP
status and the decoded body (non-2xx bodies wrapped as ``{"error": ...}``).
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import quote

import httpx
from loguru import logger

from chatwidget.config import settings
from chatwidget.services.credentials import normalize_api_key

MAX_UPLOAD_BYTES = 50 * 1024 * 1024

NETWORK_HINT = (
    "Network error: is the EduSpace API running at the base URL? If this site and "
    "the API are on different origins, the API must allow CORS for this origin."
)

# ── Sample request bodies ────────────────────────────────
EXAM_WITH_DOCUMENT_ID = {
    "document_id": "uuid-from-documents-upload",
    "title": "Quiz 1",
    "subject": "Math",
    "grade_level": "10",
    "topics": "algebra, equations",
    "language": "en",
    "settings": {
        "question_count": 10,
        "difficulty_distribution": {"easy": 30, "medium": 50, "hard": 20},
        "question_types": ["multiple_choice", "true_false"],
        "include_explanations": True,
        "include_hints": True,
    },
}

EXAM_WITH_DOCUMENT_TEXT = {
    "document_text": (
        "Your lesson or chapter text (at least 50 characters). Add more content "
        "here to generate better exam questions..."
    ),
    "title": "Quiz 1",
    "subject": "Math",
    "grade_level": "10",
    "language": "en",
    "settings": EXAM_WITH_DOCUMENT_ID["settings"],
}

LESSON_EXAMPLES = {
    "text": {"document_id": "uuid-from-documents-upload", "topic": "Introduction to Fractions", "include": "text"},
    "images": {
        "document_id": "uuid-from-documents-upload",
        "topic": "Introduction to Fractions",
        "include": "text_and_images",
    },
    "audio": {
        "document_id": "uuid-from-documents-upload",
        "topic": "Introduction to Fractions",
        "include": "text_and_audio",
    },
    "full": {
        "document_id": "uuid-from-documents-upload",
        "topic": "Introduction to Fractions",
        "include": "full",
        "language": "English",
    },
}


class EduSpaceError(Exception):
    """Raised for problems caught before any request is sent."""


@dataclass
class ConsoleResult:
    status: Optional[int] = None
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is not None and 200 <= self.status < 300

    def to_dict(self) -> dict:
        return {"status": self.status, "data": self.data, "error": self.error}


def _is_json(response: httpx.Response) -> bool:
    return "application/json" in response.headers.get("content-type", "")


def _decode(response: httpx.Response) -> ConsoleResult:
    if response.is_success:
        if _is_json(response):
            try:
                data = response.json()
            except ValueError:
                data = response.text
        else:
            data = response.text
        return ConsoleResult(status=response.status_code, data=data)

    raw = response.text
    data = {"error": raw}
    if _is_json(response):
        try:
            data = {"error": json.loads(raw)}
        except ValueError:
            pass
    return ConsoleResult(status=response.status_code, data=data)


class EduSpaceClient:
    """Thin wrapper over the EduSpace ``/api/v1/teacher`` endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.EDUSPACE_BASE_URL).strip().rstrip("/")
        self.api_key = normalize_api_key(api_key if api_key is not None else settings.EDUSPACE_API_KEY)
        self._client = client

    def _headers(self, json_body: bool = True) -> dict:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _require_credentials(self) -> None:
        if not self.base_url or not self.api_key:
            raise EduSpaceError("Base URL and API key are required.")

    async def _send(self, method: str, path: str, **kwargs) -> ConsoleResult:
        url = self.base_url + path
        logger.info(f"[EduSpace] {method} {url}")
        try:
            if self._client is not None:
                response = await self._client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=None) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"[EduSpace] {method} {url} failed: {e!r}")
            return ConsoleResult(data={"details": str(e) or type(e).__name__}, error=NETWORK_HINT)
        logger.info(f"[EduSpace] {method} {url} → {response.status_code}")
        return _decode(response)

    # ── Documents ────────────────────────────────────────
    async def verify_key(self) -> ConsoleResult:
        """List one document; a 2xx means the key is accepted."""
        self._require_credentials()
        return await self.list_documents(page=1, per_page=1)

    async def upload_document(self, path: Union[str, Path]) -> ConsoleResult:
        self._require_credentials()
        path = Path(path)
        if not path.is_file():
            raise EduSpaceError("Choose a file (PDF, text, or markdown). Max 50MB.")
        if path.stat().st_size > MAX_UPLOAD_BYTES:
            raise EduSpaceError(f"{path.name} is larger than 50MB.")
        with path.open("rb") as fh:
            files = {"file": (path.name, fh.read())}
        return await self._send(
            "POST", "/documents/upload", headers=self._headers(json_body=False), files=files
        )

    async def list_documents(self, page: int = 1, per_page: int = 10) -> ConsoleResult:
        self._require_credentials()
        return await self._send(
            "GET",
            "/documents",
            headers=self._headers(),
            params={"page": page, "per_page": per_page},
        )

    async def get_document(self, document_id: str) -> ConsoleResult:
        self._require_credentials()
        document_id = (document_id or "").strip()
        if not document_id:
            raise EduSpaceError("Enter a document ID (UUID).")
        return await self._send(
            "GET", f"/documents/{quote(document_id, safe='')}", headers=self._headers()
        )

    # ── Generation ───────────────────────────────────────
    async def generate_exam(self, payload: Union[dict, str]) -> ConsoleResult:
        return await self._generate("/exams/generate", payload)

    async def generate_lesson(self, payload: Union[dict, str]) -> ConsoleResult:
        return await self._generate("/lessons/generate", payload)

    async def _generate(self, path: str, payload: Union[dict, str]) -> ConsoleResult:
        self._require_credentials()
        if isinstance(payload, str):
            try:
                payload = json.loads(payload or "{}")
            except ValueError:
                raise EduSpaceError("Invalid JSON in request body") from None
        return await self._send("POST", path, headers=self._headers(), json=payload)

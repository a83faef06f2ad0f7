"""
Assistant catalog and chat-button embed endpoints.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException

from chatwidget.config import settings
from chatwidget.models.schemas import AssistantInfo, EmbedInfo
from chatwidget.services.assistant_catalog import (
    Assistant,
    embed_url,
    get_assistant,
    list_assistants,
    resolve_api_key,
)

router = APIRouter(prefix="/api", tags=["assistants"])


def _info(assistant: Assistant) -> AssistantInfo:
    return AssistantInfo(
        id=assistant.id,
        name=assistant.name,
        description=assistant.description,
        icon=assistant.icon,
        api_id=assistant.api_id,
        has_api_key=bool(resolve_api_key(assistant).strip()),
    )


@router.get("/assistants", response_model=list[AssistantInfo])
async def assistants():
    return [_info(a) for a in list_assistants()]


@router.get("/assistants/{assistant_id}", response_model=AssistantInfo)
async def assistant_detail(assistant_id: str):
    assistant = get_assistant(assistant_id)
    if not assistant:
        raise HTTPException(status_code=404, detail="Assistant not found")
    return _info(assistant)


@router.get("/widget/embed", response_model=EmbedInfo)
async def widget_embed(assistant: Optional[str] = None):
    """Iframe source for the floating chat button."""
    assistant_id = assistant or settings.DEFAULT_ASSISTANT_ID
    return EmbedInfo(assistant=assistant_id, iframe_url=embed_url(assistant_id))

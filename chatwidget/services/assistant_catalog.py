"""
The assistants offered on the selector page and the chat-button embed.
"""

from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlencode

from chatwidget.config import settings


@dataclass(frozen=True)
class Assistant:
    id: str  # share link
    name: str
    description: str
    icon: str
    api_id: str
    key_slot: int


ASSISTANTS: List[Assistant] = [
    Assistant(
        id="əmək-məcələsi-1760266330650",
        name="Əmək Məcələsi Köməkçisi",
        description="Əmək qanunvericiliyi və işçi hüquqları ilə bağlı suallara cavab verir",
        icon="👨‍💼",
        api_id="1",
        key_slot=1,
    ),
    Assistant(
        id="farabi---access-|-business-trip-|-hp-dictionaries-1760079411198",
        name="SERP üzrə dəstəy",
        description="SERP üzrə dəstəy",
        icon="💬",
        api_id="2",
        key_slot=2,
    ),
    Assistant(
        id="texniki-kömək-1760266330652",
        name="Texniki Kömək",
        description="Texniki problemlərin həllində kömək göstərir",
        icon="🔧",
        api_id="3",
        key_slot=3,
    ),
    Assistant(
        id="satış-köməkçisi-1760266330653",
        name="Satış Köməkçisi",
        description="Məhsullar və xidmətlər haqqında məlumat verir",
        icon="💰",
        api_id="4",
        key_slot=4,
    ),
]


def list_assistants() -> List[Assistant]:
    return list(ASSISTANTS)


def get_assistant(assistant_id: str) -> Optional[Assistant]:
    for assistant in ASSISTANTS:
        if assistant.id == assistant_id:
            return assistant
    return None


def resolve_api_key(assistant: Assistant) -> str:
    """The shared ``API_KEY`` wins; otherwise the assistant's numbered slot."""
    if settings.API_KEY:
        return settings.API_KEY
    return getattr(settings, f"API_KEY_{assistant.key_slot}", "") or ""


def embed_url(assistant_id: Optional[str] = None) -> str:
    query = urlencode({"assistant": assistant_id or settings.DEFAULT_ASSISTANT_ID})
    return f"{settings.WIDGET_BASE_URL}?{query}"

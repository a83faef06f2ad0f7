"""
Application configuration, read from environment variables and .env.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "Chat Widget Proxy"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    # ── Upstream chat API ────────────────────────────────
    CHAT_API_URL: str = "https://www.purescan.info/api/chat"

    # ── Chat widget ──────────────────────────────────────
    WIDGET_BASE_URL: str = "https://www.purescan.info/chat"
    DEFAULT_ASSISTANT_ID: str = "əmək-məcələsi-1760266330650"

    # ── Assistant keys ───────────────────────────────────
    # A single shared key wins over the per-assistant ones.
    API_KEY: str = ""
    API_KEY_1: str = ""
    API_KEY_2: str = ""
    API_KEY_3: str = ""
    API_KEY_4: str = ""

    # ── EduSpace teacher API ─────────────────────────────
    EDUSPACE_BASE_URL: str = "http://localhost:4000/api/v1/teacher"
    EDUSPACE_API_KEY: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

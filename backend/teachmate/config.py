"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Database ─────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./teachmate.db"

    # ── Auth ─────────────────────────────────────────────────────────────────
    SECRET_KEY: str = "teachmate-dev-secret-change-in-prod"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30  # 30 days

    # ── CORS ─────────────────────────────────────────────────────────────────
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # ── Logging ──────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── OpenRouter (primary LLM + embeddings) ────────────────────────────────
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_REFERER: str = "https://teachmate-ai.com"
    OPENROUTER_TITLE: str = "TeachMate AI"
    GENERATION_MODEL: str = "anthropic/claude-3.5-sonnet"
    GRADING_MODEL: str = "openai/gpt-4o-mini"
    CHAT_MODEL: str = "openai/gpt-4o-mini"
    EMBEDDING_MODEL: str = "openai/text-embedding-3-small"

    # ── Anthropic Claude (fallback when OpenRouter is not configured) ────────
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-20241022"

    # ── Pinecone ─────────────────────────────────────────────────────────────
    # Data-plane host of the index, e.g. teachmate-resources-abc123.svc.pinecone.io
    PINECONE_API_KEY: str = ""
    PINECONE_INDEX_HOST: str = ""

    # ── YouTube Data API ─────────────────────────────────────────────────────
    YOUTUBE_API_KEY: str = ""

    # ── Retell voice calls ───────────────────────────────────────────────────
    RETELL_API_KEY: str = ""
    RETELL_BASE_URL: str = "https://api.retellai.com"
    RETELL_AGENT_ID_STUDENT: str = ""
    RETELL_AGENT_ID_PARENT: str = ""

    # ── Timeouts (seconds, no retries) ───────────────────────────────────────
    LLM_TIMEOUT_SECONDS: float = 60.0
    GRADING_TIMEOUT_SECONDS: float = 30.0
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # ── Schedulers ───────────────────────────────────────────────────────────
    # Both loops assume a single running instance of the server.
    SCHEDULERS_ENABLED: bool = True
    ASSESSMENT_SWEEP_INTERVAL_SECONDS: float = 60.0
    GRADING_SWEEP_INTERVAL_SECONDS: float = 60.0
    GRADING_ITEM_DELAY_SECONDS: float = 1.0
    CURATION_TOPIC_DELAY_SECONDS: float = 0.5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM gateway (OpenAI-compatible chat completions)
    LLM_API_KEY: Optional[str] = Field(default=None)
    LLM_GATEWAY_URL: str = Field(default="https://ai.gateway.lovable.dev/v1")
    LLM_MODEL: str = Field(default="google/gemini-2.5-flash")

    # Number of prior chat messages forwarded upstream with a mentor_chat request
    CHAT_HISTORY_LIMIT: int = Field(default=10, ge=0)

    # Database; Postgres deployments use postgresql+asyncpg://...
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./bloomiq.db")
    DATABASE_ECHO: bool = Field(default=False)

    # Bearer tokens issued by the auth provider
    JWT_SECRET_KEY: str = Field(default="insecure-default-secret")
    JWT_ALGORITHM: str = Field(default="HS256")

    CORS_ORIGINS: List[str] = Field(default=["*"])
    LOG_LEVEL: str = Field(default="INFO")


settings = Settings()

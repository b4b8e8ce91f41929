from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Where the relay lives and the publishable key sent as the bearer credential."""

    model_config = SettingsConfigDict(
        env_prefix="BLOOMIQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    API_URL: str = Field(default="http://localhost:8000/ai-learning")
    PUBLISHABLE_KEY: str = Field(default="")

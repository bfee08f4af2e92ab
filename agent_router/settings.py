# agent_router/settings.py
import os
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # core
    APP_NAME: str = Field(default="Agent Router Proxy")
    ENV: str = Field(default=os.getenv("APP_ENV", "dev"))
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3001)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # upstream
    OPENROUTER_API_KEY: str | None = None
    UPSTREAM_URL: str = Field(default="https://openrouter.ai/api/v1/chat/completions")
    HTTP_REFERER: str = Field(default="http://localhost:5173")
    CHAT_TITLE: str = Field(default="MUZ AI")
    GENERATION_TIMEOUT: float = Field(default=120.0)

    # .env for deployments, .env.dev for local work
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.dev"),
        extra="ignore",
    )

    @property
    def app_name(self) -> str:
        return self.APP_NAME


settings = Settings()

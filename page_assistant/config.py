from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from page_assistant.replies import DEFAULT_PLACEHOLDER
from page_assistant.threads import ThreadPolicy


class Settings(BaseSettings):
    """Runtime configuration for the chat service, read from the environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    openai_api_key: str
    assistant_id: str
    openai_base_url: Optional[str] = None

    poll_interval: float = Field(default=1.0, ge=0)
    max_poll_attempts: int = Field(default=60, ge=1)
    max_action_rounds: int = Field(default=10, ge=1)
    thread_policy: ThreadPolicy = ThreadPolicy.REQUEST
    empty_reply_placeholder: str = DEFAULT_PLACEHOLDER

    host: str = "0.0.0.0"
    port: int = 3000
    session_secret: str = "secret-key"
    database_url: str = "sqlite+aiosqlite:///./page_assistant.db"
    log_level: str = "INFO"

    github_token: Optional[str] = None
    github_owner: Optional[str] = None
    github_repo: Optional[str] = None
    github_branch: str = "main"
    # Comma-separated, e.g. ".html,.css,.js"; empty allows every file
    editable_file_extensions: str = ""

    facebook_page_id: Optional[str] = None
    facebook_page_access_token: Optional[str] = None
    facebook_graph_version: str = "v19.0"

    @property
    def editable_extensions(self) -> list[str]:
        return [
            ext.strip().lower()
            for ext in self.editable_file_extensions.split(",")
            if ext.strip()
        ]

    @property
    def github_configured(self) -> bool:
        return bool(self.github_token and self.github_owner and self.github_repo)

    @property
    def facebook_configured(self) -> bool:
        return bool(self.facebook_page_id and self.facebook_page_access_token)


@lru_cache
def get_settings() -> Settings:
    return Settings()

"""
Runtime configuration.

Settings are read from environment variables by 'ClientSettings.from_env()';
everything has a default so the shell starts without any configuration except
an API key for the model backend.
"""

import os
from pathlib import Path

from pydantic import BaseModel

from conversational_client.controller import DEFAULT_LANGUAGE
from conversational_client.replies.llm import DEFAULT_SYSTEM_PROMPT

DEFAULT_STORAGE_PATH = Path.home() / ".conversational_client" / "storage.json"


class ClientSettings(BaseModel):
    storage_path: Path = DEFAULT_STORAGE_PATH
    default_language: str = DEFAULT_LANGUAGE
    log_level: str = "INFO"
    model: str = "gpt-4o-mini"
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    @classmethod
    def from_env(cls) -> "ClientSettings":
        defaults = cls()
        return cls(
            storage_path=Path(os.getenv("CHAT_STORAGE_PATH") or defaults.storage_path).expanduser(),
            default_language=os.getenv("DEFAULT_LANGUAGE") or defaults.default_language,
            log_level=(os.getenv("LOG_LEVEL") or defaults.log_level).upper(),
            model=os.getenv("MODEL") or defaults.model,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            system_prompt=os.getenv("SYSTEM_PROMPT") or defaults.system_prompt,
        )

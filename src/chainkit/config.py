# File: src/chainkit/config.py

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


class Settings(BaseModel):
    """Process-wide settings read from the environment (and a local .env file)."""
    openai_api_key: str | None = None
    default_model: str = "gpt-4o-mini"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            default_model=os.environ.get("CHAINKIT_DEFAULT_MODEL", "gpt-4o-mini"),
            log_level=os.environ.get("CHAINKIT_LOG_LEVEL", "INFO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError


DEFAULT_DB_PATH = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "apps", "api", "data", "threads.db")
)
DEFAULT_PROJECT_DESCRIPTION = (
    "cross-seed, a BitTorrent cross-seeding automation tool: https://cross-seed.org"
)
DEFAULT_TITLE = "Discord Thread Summaries"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class WebSettings:
    """The subset of settings the read-only pages and the access gate need."""

    web_api_key: Optional[str] = None
    db_path: str = DEFAULT_DB_PATH
    title: str = DEFAULT_TITLE

    @classmethod
    def from_env(cls) -> "WebSettings":
        return cls(
            web_api_key=_env_str("WEB_API_KEY"),
            db_path=os.getenv("THREAD_DIGEST_DB_PATH", DEFAULT_DB_PATH),
            title=os.getenv("DIGEST_TITLE", DEFAULT_TITLE),
        )


@dataclass(frozen=True)
class SyncSettings:
    discord_token: Optional[str]
    forum_channel_id: Optional[str]
    discord_base_url: str = "https://discord.com/api/v10"
    lookback: int = 2
    page_size: int = 100
    max_messages: Optional[int] = None
    verbose_logs: bool = False
    web_api_key: Optional[str] = None
    openai_model: str = "gpt-5-mini"
    project_description: str = DEFAULT_PROJECT_DESCRIPTION
    interval_hours: int = 24
    scheduler_enabled: bool = True
    db_path: str = DEFAULT_DB_PATH
    title: str = DEFAULT_TITLE

    @classmethod
    def from_env(cls) -> "SyncSettings":
        page_size = _env_int("DISCORD_PAGE_SIZE", 100)
        if not 1 <= page_size <= 100:
            raise ConfigurationError("DISCORD_PAGE_SIZE must be between 1 and 100")
        lookback = _env_int("LOOKBACK", 2)
        if lookback < 1:
            raise ConfigurationError("LOOKBACK must be at least 1")
        max_messages = _env_int("MAX_MESSAGES_PER_THREAD", None)
        if max_messages is not None and max_messages < 1:
            raise ConfigurationError("MAX_MESSAGES_PER_THREAD must be at least 1")
        interval_hours = _env_int("SYNC_INTERVAL_HOURS", 24)
        if interval_hours < 1:
            raise ConfigurationError("SYNC_INTERVAL_HOURS must be at least 1")

        return cls(
            discord_token=_env_str("DISCORD_BOT_TOKEN"),
            forum_channel_id=_env_str("DISCORD_FORUM_CHANNEL_ID"),
            discord_base_url=os.getenv("DISCORD_API_BASE_URL", "https://discord.com/api/v10"),
            lookback=lookback,
            page_size=page_size,
            max_messages=max_messages,
            verbose_logs=_env_bool("DISCORD_VERBOSE_LOGS"),
            web_api_key=_env_str("WEB_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-5-mini"),
            project_description=os.getenv(
                "DIGEST_PROJECT_DESCRIPTION", DEFAULT_PROJECT_DESCRIPTION
            ),
            interval_hours=interval_hours,
            scheduler_enabled=_env_bool("SYNC_SCHEDULER_ENABLED", "true"),
            db_path=os.getenv("THREAD_DIGEST_DB_PATH", DEFAULT_DB_PATH),
            title=os.getenv("DIGEST_TITLE", DEFAULT_TITLE),
        )

    def require_source(self) -> None:
        """Raise if the settings needed to reach Discord are missing."""
        missing = [
            name
            for name, value in (
                ("DISCORD_BOT_TOKEN", self.discord_token),
                ("DISCORD_FORUM_CHANNEL_ID", self.forum_channel_id),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

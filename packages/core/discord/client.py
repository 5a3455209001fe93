from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..config import SyncSettings
from ..errors import SourceFetchError


logger = logging.getLogger("thread_digest.discord")

DISCORD_EPOCH_MS = 1420070400000


@dataclass(frozen=True)
class DiscordMessage:
    id: str
    author_name: str
    content: str
    created_timestamp: int


@dataclass(frozen=True)
class DiscordThread:
    id: str
    name: str
    parent_id: Optional[str] = None


def snowflake_timestamp(snowflake: str) -> int:
    """Epoch milliseconds encoded in a Discord snowflake."""
    return (int(snowflake) >> 22) + DISCORD_EPOCH_MS


def _author_name(author: Dict[str, Any]) -> str:
    return author.get("global_name") or author.get("username") or "unknown"


def parse_message(payload: Dict[str, Any]) -> DiscordMessage:
    message_id = str(payload["id"])
    return DiscordMessage(
        id=message_id,
        author_name=_author_name(payload.get("author") or {}),
        content=payload.get("content") or "",
        created_timestamp=snowflake_timestamp(message_id),
    )


def parse_thread(payload: Dict[str, Any]) -> DiscordThread:
    parent_id = payload.get("parent_id")
    return DiscordThread(
        id=str(payload["id"]),
        name=payload.get("name") or "",
        parent_id=str(parent_id) if parent_id else None,
    )


class DiscordClient:
    """Thin REST client over the parts of the Discord API the sync needs."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://discord.com/api/v10",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bot {token}",
                "User-Agent": "thread-digest (https://cross-seed.org, 1.0)",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> "DiscordClient":
        settings.require_source()
        return cls(token=settings.discord_token, base_url=settings.discord_base_url)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DiscordClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise SourceFetchError(
                f"Discord HTTP {status} error for {path}: {exc.response.text}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceFetchError(f"Discord request failed for {path}: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise SourceFetchError(f"Discord returned invalid JSON for {path}") from exc

    def fetch_page(
        self, thread_id: str, before: Optional[str] = None, limit: int = 100
    ) -> List[DiscordMessage]:
        """Return up to ``limit`` messages older than ``before``, newest first."""
        params: Dict[str, Any] = {"limit": limit}
        if before:
            params["before"] = before
        path = f"/channels/{thread_id}/messages"
        payload = self._get(path, params=params)
        if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
            raise SourceFetchError(f"Discord returned unexpected payload for {path}")
        messages = [parse_message(item) for item in payload]
        logger.debug(
            "discord_page thread_id=%s before=%s count=%s", thread_id, before, len(messages)
        )
        return messages

    def fetch_newest(self, thread_id: str) -> Optional[DiscordMessage]:
        page = self.fetch_page(thread_id, limit=1)
        return page[0] if page else None

    def list_archived_threads(self, parent_id: str, limit: int) -> List[DiscordThread]:
        path = f"/channels/{parent_id}/threads/archived/public"
        payload = self._get(path, params={"limit": limit})
        items = payload.get("threads", []) if isinstance(payload, dict) else None
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise SourceFetchError(f"Discord returned unexpected payload for {path}")
        threads = [parse_thread(item) for item in items]
        logger.debug("discord_archived parent_id=%s count=%s", parent_id, len(threads))
        return threads[:limit]

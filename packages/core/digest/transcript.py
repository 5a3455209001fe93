from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from packages.core.discord.client import DiscordMessage, DiscordThread
from packages.core.storage.base import ThreadSummaryState, TranscriptMessage

from .detector import has_new_messages


logger = logging.getLogger("thread_digest.sync")


class MessageSource(Protocol):
    def fetch_newest(self, thread_id: str) -> Optional[DiscordMessage]:
        """Return the newest message of a thread, or None when it is empty."""

    def fetch_page(
        self, thread_id: str, before: Optional[str] = None, limit: int = 100
    ) -> List[DiscordMessage]:
        """Return messages older than ``before``, newest first."""

    def list_archived_threads(self, parent_id: str, limit: int) -> List[DiscordThread]:
        """Return up to ``limit`` most recently archived threads."""


@dataclass(frozen=True)
class FetchedTranscript:
    transcript: List[TranscriptMessage]
    last_message_timestamp: int


def fetch_transcript(
    source: MessageSource,
    thread: DiscordThread,
    existing: Optional[ThreadSummaryState] = None,
    page_size: int = 100,
    max_messages: Optional[int] = None,
) -> Optional[FetchedTranscript]:
    """
    Fetch the full history of a thread, or None when nothing changed.

    Pages are requested backward from the newest message. A page shorter
    than ``page_size`` ends the walk, as does reaching ``max_messages``;
    with a cap only the most recent messages are kept.
    """
    newest = source.fetch_newest(thread.id)
    if newest is None:
        logger.debug("thread_empty thread_id=%s", thread.id)
        return None
    if not has_new_messages(existing, newest):
        return None

    collected: List[DiscordMessage] = [newest]
    before = newest.id
    while max_messages is None or len(collected) < max_messages:
        page = source.fetch_page(thread.id, before=before, limit=page_size)
        if not page:
            break
        collected.extend(page)
        before = page[-1].id
        if len(page) < page_size:
            break

    if max_messages is not None:
        collected = collected[:max_messages]

    transcript = [
        TranscriptMessage(user=message.author_name, content=message.content)
        for message in reversed(collected)
    ]
    return FetchedTranscript(
        transcript=transcript,
        last_message_timestamp=newest.created_timestamp,
    )

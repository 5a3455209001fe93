from __future__ import annotations

from typing import Optional

from packages.core.discord.client import DiscordMessage
from packages.core.storage.base import ThreadSummaryState


def has_new_messages(
    existing: Optional[ThreadSummaryState], newest: DiscordMessage
) -> bool:
    """
    Decide whether a thread needs a resync.

    Only the newest message timestamp is compared, so edits to older
    messages do not trigger a resync.
    """
    if existing is None:
        return True
    return existing.last_message_timestamp != newest.created_timestamp

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class TranscriptMessage:
    user: str
    content: str


@dataclass(frozen=True)
class ThreadSummaryState:
    thread_id: str
    name: str
    summary: str
    last_message_timestamp: int
    updated_at: int
    transcript: List[TranscriptMessage] = field(default_factory=list)


@runtime_checkable
class ThreadSummaryStore(Protocol):
    def upsert_thread_summary(
        self,
        thread_id: str,
        name: str,
        transcript: List[TranscriptMessage],
        summary: str,
        last_message_timestamp: int,
    ) -> ThreadSummaryState:
        """Insert or fully overwrite a thread summary. Returns the stored state."""

    def get_thread_summary(self, thread_id: str) -> Optional[ThreadSummaryState]:
        """Return a thread summary or None if the thread was never synced."""

    def list_thread_summaries(self) -> List[ThreadSummaryState]:
        """List all thread summaries, most recently active first."""

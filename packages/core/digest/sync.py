from __future__ import annotations

import datetime as dt
import logging
import threading
from contextlib import nullcontext
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from packages.core.config import SyncSettings
from packages.core.discord.client import DiscordClient, DiscordThread
from packages.core.errors import ConfigurationError, DigestError, SyncAlreadyRunning
from packages.core.llm.openai_client import OpenAIClient
from packages.core.storage.base import ThreadSummaryStore
from packages.core.storage.sqlite import SQLiteThreadSummaryStore

from .summarizer import ThreadSummarizer
from .transcript import MessageSource, fetch_transcript

try:
    from opentelemetry import trace
except Exception:  # pragma: no cover - optional dependency resolution
    trace = None


logger = logging.getLogger("thread_digest.sync")


def _utc_now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


@dataclass
class SyncStats:
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    failed_thread_ids: List[str] = field(default_factory=list)
    started_at: Optional[str] = None
    finished_at: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ThreadSyncService:
    """Mirrors recently archived forum threads into the summary store."""

    def __init__(
        self,
        source: MessageSource,
        store: ThreadSummaryStore,
        summarizer: ThreadSummarizer,
        settings: SyncSettings,
    ) -> None:
        self.source = source
        self.store = store
        self.summarizer = summarizer
        self.settings = settings
        self.last_stats: Optional[SyncStats] = None
        self._run_lock = threading.Lock()
        self._tracer = trace.get_tracer("thread_digest.sync") if trace else None

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def run(self, lookback: Optional[int] = None) -> SyncStats:
        if not self._run_lock.acquire(blocking=False):
            raise SyncAlreadyRunning("A sync run is already in progress")
        try:
            stats = self._run(self.settings.lookback if lookback is None else lookback)
        finally:
            self._run_lock.release()
        self.last_stats = stats
        return stats

    def _run(self, lookback: int) -> SyncStats:
        parent_id = self.settings.forum_channel_id
        if not parent_id:
            raise ConfigurationError("DISCORD_FORUM_CHANNEL_ID is required to sync")

        stats = SyncStats(started_at=_utc_now_iso())
        threads = self.source.list_archived_threads(parent_id, lookback)
        logger.debug("sync_threads_listed count=%s lookback=%s", len(threads), lookback)

        for thread in threads:
            span_context = (
                self._tracer.start_as_current_span(
                    "sync.thread", attributes={"discord.thread_id": thread.id}
                )
                if self._tracer
                else nullcontext()
            )
            try:
                with span_context:
                    changed = self._sync_thread(thread)
            except DigestError as exc:
                stats.failed += 1
                stats.failed_thread_ids.append(thread.id)
                logger.exception(
                    "sync_thread_failed thread_id=%s error=%s", thread.id, exc
                )
                continue
            if changed:
                stats.processed += 1
            else:
                stats.skipped += 1

        stats.finished_at = _utc_now_iso()
        logger.info(
            "sync_complete processed=%s skipped=%s failed=%s",
            stats.processed,
            stats.skipped,
            stats.failed,
        )
        return stats

    def _sync_thread(self, thread: DiscordThread) -> bool:
        logger.debug('sync_thread_start thread_id=%s name="%s"', thread.id, thread.name)
        existing = self.store.get_thread_summary(thread.id)
        fetched = fetch_transcript(
            self.source,
            thread,
            existing,
            page_size=self.settings.page_size,
            max_messages=self.settings.max_messages,
        )
        if fetched is None:
            logger.debug("sync_thread_skipped thread_id=%s reason=no_new_messages", thread.id)
            return False

        logger.debug(
            "sync_thread_fetched thread_id=%s messages=%s",
            thread.id,
            len(fetched.transcript),
        )
        logger.info('Summarizing "%s"', thread.name)
        summary = self.summarizer.summarize(thread.name, fetched.transcript)
        self.store.upsert_thread_summary(
            thread_id=thread.id,
            name=thread.name,
            transcript=fetched.transcript,
            summary=summary,
            last_message_timestamp=fetched.last_message_timestamp,
        )
        return True


def run_sync_safely(service: ThreadSyncService) -> Optional[SyncStats]:
    """Run one sweep, logging instead of raising so a scheduler keeps going."""
    try:
        return service.run()
    except SyncAlreadyRunning:
        logger.warning("sync_skipped reason=already_running")
    except Exception as exc:
        logger.exception("sync_failed error=%s", exc)
    return None


def build_sync_service(settings: SyncSettings) -> ThreadSyncService:
    return ThreadSyncService(
        source=DiscordClient.from_settings(settings),
        store=SQLiteThreadSummaryStore(db_path=settings.db_path),
        summarizer=ThreadSummarizer(
            llm_client=OpenAIClient(model=settings.openai_model),
            project_description=settings.project_description,
        ),
        settings=settings,
    )

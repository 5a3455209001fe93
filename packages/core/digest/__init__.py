from __future__ import annotations

__all__ = [
    "FetchedTranscript",
    "SyncStats",
    "ThreadSummarizer",
    "ThreadSyncService",
    "build_json_feed",
    "build_sync_service",
    "fetch_transcript",
    "has_new_messages",
    "render_page",
    "run_sync_safely",
]

from .detector import has_new_messages
from .render import build_json_feed, render_page
from .summarizer import ThreadSummarizer
from .sync import SyncStats, ThreadSyncService, build_sync_service, run_sync_safely
from .transcript import FetchedTranscript, fetch_transcript

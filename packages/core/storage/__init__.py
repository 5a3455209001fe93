from .base import ThreadSummaryState, ThreadSummaryStore, TranscriptMessage
from .sqlite import SQLiteThreadSummaryStore

__all__ = [
    "ThreadSummaryState",
    "ThreadSummaryStore",
    "TranscriptMessage",
    "SQLiteThreadSummaryStore",
]

from .feed import FeedItem, FeedTranscriptMessage, JsonFeed
from .sync import SyncRunRequest, SyncStatsResponse, SyncStatusResponse

__all__ = [
    "FeedItem",
    "FeedTranscriptMessage",
    "JsonFeed",
    "SyncRunRequest",
    "SyncStatsResponse",
    "SyncStatusResponse",
]

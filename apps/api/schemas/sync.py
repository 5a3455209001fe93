from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class SyncRunRequest(BaseModel):
    lookback: Optional[int] = Field(default=None, ge=1)


class SyncStatsResponse(BaseModel):
    processed: int
    skipped: int
    failed: int
    failed_thread_ids: List[str] = Field(default_factory=list)
    started_at: Optional[str] = None
    finished_at: Optional[str] = None


class SyncStatusResponse(BaseModel):
    running: bool
    last_run: Optional[SyncStatsResponse] = None
    thread_count: int
    newest_message_timestamp: Optional[int] = None

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from apps.api.access import is_authorized
from apps.api.schemas.sync import SyncRunRequest, SyncStatsResponse, SyncStatusResponse
from packages.core.config import WebSettings
from packages.core.digest.sync import ThreadSyncService
from packages.core.errors import DigestError, SyncAlreadyRunning
from packages.core.storage.sqlite import SQLiteThreadSummaryStore


router = APIRouter(prefix="/api/sync", tags=["sync"])


def _settings() -> WebSettings:
    return WebSettings.from_env()


def _service(request: Request) -> Optional[ThreadSyncService]:
    return getattr(request.app.state, "sync_service", None)


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(request: Request, apikey: Optional[str] = None):
    settings = _settings()
    if not is_authorized(settings, apikey):
        return Response(status_code=401)
    service = _service(request)
    snapshot = SQLiteThreadSummaryStore(db_path=settings.db_path).debug_snapshot()
    last_stats = service.last_stats if service else None
    return SyncStatusResponse(
        running=service.is_running if service else False,
        last_run=SyncStatsResponse(**last_stats.as_dict()) if last_stats else None,
        thread_count=snapshot["thread_count"],
        newest_message_timestamp=snapshot["newest_message_timestamp"],
    )


@router.post("/run", response_model=SyncStatsResponse)
def run_sync(
    request: Request,
    payload: Optional[SyncRunRequest] = None,
    apikey: Optional[str] = None,
):
    if not is_authorized(_settings(), apikey):
        return Response(status_code=401)
    service = _service(request)
    if service is None:
        raise HTTPException(status_code=503, detail="sync_not_configured")
    lookback = payload.lookback if payload else None
    try:
        stats = service.run(lookback=lookback)
    except SyncAlreadyRunning:
        raise HTTPException(status_code=409, detail="sync_already_running")
    except DigestError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return SyncStatsResponse(**stats.as_dict())

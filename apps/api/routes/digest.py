from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, Response

from apps.api.access import is_authorized
from apps.api.schemas.feed import JsonFeed
from packages.core.config import WebSettings
from packages.core.digest.render import build_json_feed, render_page
from packages.core.storage.sqlite import SQLiteThreadSummaryStore


router = APIRouter(tags=["digest"])

FEED_MEDIA_TYPE = "application/feed+json; charset=utf-8"


def _settings() -> WebSettings:
    return WebSettings.from_env()


def _store(settings: WebSettings) -> SQLiteThreadSummaryStore:
    return SQLiteThreadSummaryStore(db_path=settings.db_path)


@router.get("/", response_class=HTMLResponse)
def thread_page(
    apikey: Optional[str] = None, thread: Optional[str] = None
) -> Response:
    settings = _settings()
    if not is_authorized(settings, apikey):
        return Response(status_code=401)
    records = _store(settings).list_thread_summaries()
    return HTMLResponse(render_page(records, open_thread_id=thread, title=settings.title))


@router.get("/feed.json")
def thread_feed(request: Request, apikey: Optional[str] = None) -> Response:
    settings = _settings()
    if not is_authorized(settings, apikey):
        return Response(status_code=401)
    records = _store(settings).list_thread_summaries()
    origin = str(request.base_url).rstrip("/")
    feed = JsonFeed.model_validate(
        build_json_feed(records, origin, apikey=apikey, title=settings.title)
    )
    return Response(content=feed.model_dump_json(indent=2), media_type=FEED_MEDIA_TYPE)

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

try:
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
except Exception:  # pragma: no cover - optional dependency resolution
    FastAPIInstrumentor = None

from apps.api.observability import init_observability
from apps.api.routes.digest import router as digest_router
from apps.api.routes.sync import router as sync_router
from apps.api.sync_scheduler import start_scheduler
from packages.core.config import SyncSettings
from packages.core.digest.sync import build_sync_service
from packages.core.errors import ConfigurationError
from packages.core.logging_config import configure_logging


logger = logging.getLogger("thread_digest.api")

configure_logging()

init_observability()
app = FastAPI(title="Thread Digest")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)
if FastAPIInstrumentor is not None:
    FastAPIInstrumentor.instrument_app(app)
else:
    logger.warning(
        "OpenTelemetry instrumentation not available. "
        "Install observability dependencies to enable tracing."
    )
app.include_router(digest_router)
app.include_router(sync_router)

app.state.sync_service = None
app.state.scheduler = None


@app.on_event("startup")
def _start_sync_scheduler() -> None:
    if app.state.sync_service is not None:
        return
    try:
        settings = SyncSettings.from_env()
        service = build_sync_service(settings)
    except ConfigurationError as exc:
        logger.warning("sync_disabled reason=%s", exc)
        return
    app.state.sync_service = service
    if settings.scheduler_enabled:
        app.state.scheduler = start_scheduler(service, settings.interval_hours)


@app.on_event("shutdown")
def _stop_sync_scheduler() -> None:
    if app.state.scheduler is not None:
        app.state.scheduler.shutdown(wait=False)
        app.state.scheduler = None
    service = app.state.sync_service
    if service is not None:
        service.source.close()
        app.state.sync_service = None

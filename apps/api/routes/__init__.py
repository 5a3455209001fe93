from .digest import router as digest_router
from .sync import router as sync_router

__all__ = [
    "digest_router",
    "sync_router",
]

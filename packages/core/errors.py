from __future__ import annotations

from typing import Optional


class DigestError(Exception):
    pass


class SourceFetchError(DigestError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SummarizationError(DigestError):
    pass


class PersistenceError(DigestError):
    pass


class ConfigurationError(DigestError):
    pass


class SyncAlreadyRunning(DigestError):
    pass

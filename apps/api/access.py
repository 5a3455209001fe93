from __future__ import annotations

import hmac
from typing import Optional

from packages.core.config import WebSettings


def is_authorized(settings: WebSettings, apikey: Optional[str]) -> bool:
    """Every request passes when no WEB_API_KEY is configured."""
    if not settings.web_api_key:
        return True
    if apikey is None:
        return False
    return hmac.compare_digest(apikey.encode("utf-8"), settings.web_api_key.encode("utf-8"))

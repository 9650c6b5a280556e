"""
Integración con Lark Bitable.

El LarkTokenManager es único por proceso: todas las llamadas comparten la
misma sesión cacheada. Se construye de forma perezosa desde `settings`.
"""

from __future__ import annotations

from functools import lru_cache

from erp_bridge.core.config import settings

from .bitable_client import BitableClient
from .token_manager import LarkSession, LarkTokenManager


@lru_cache(maxsize=1)
def get_token_manager() -> LarkTokenManager:
    return LarkTokenManager(
        base_url=settings.LARK_BASE_URL,
        app_id=settings.LARK_APP_ID,
        app_secret=settings.LARK_APP_SECRET,
        static_token=settings.LARK_TOKEN,
        safety_margin_seconds=settings.LARK_TOKEN_SAFETY_MARGIN_SECONDS,
        timeout_s=settings.LARK_TIMEOUT_SECONDS,
    )


def get_bitable_client() -> BitableClient:
    return BitableClient(
        get_token_manager(),
        base_url=settings.LARK_BASE_URL,
        timeout_s=settings.LARK_TIMEOUT_SECONDS,
    )


__all__ = [
    "BitableClient",
    "LarkSession",
    "LarkTokenManager",
    "get_bitable_client",
    "get_token_manager",
]

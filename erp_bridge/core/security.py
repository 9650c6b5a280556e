"""
Proteccion del API por API key (header x-api-key).

Usa comparación en tiempo constante (hmac.compare_digest) contra cada una de
las keys configuradas en API_KEYS.
"""
import hmac
from typing import List, Optional

from fastapi import Header

from erp_bridge.core.config import settings, get_api_keys
from erp_bridge.shared.exceptions.auth import InvalidApiKeyException, MissingApiKeyException


class ApiKeyVerifier:
    """Verifica un API key contra la lista permitida."""

    def __init__(self, api_keys: List[str]) -> None:
        self._api_keys = [k for k in api_keys if k]

    def verify(self, provided: str) -> bool:
        matched = False
        for key in self._api_keys:
            if hmac.compare_digest(key.encode("utf-8"), provided.encode("utf-8")):
                matched = True
        return matched


async def require_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="x-api-key")
) -> str:
    """
    Dependencia de FastAPI para las rutas protegidas.

    Raises:
        MissingApiKeyException: 401 si no se envia el header
        InvalidApiKeyException: 403 si no coincide con ninguna key
    """
    provided = (x_api_key or "").strip()
    if not provided:
        raise MissingApiKeyException()
    if not ApiKeyVerifier(get_api_keys(settings.API_KEYS)).verify(provided):
        raise InvalidApiKeyException()
    return provided

"""
Gestor de tokens de acceso de Lark (cache en memoria).

Prioridad:
1. Token estático (LARK_TOKEN): se usa siempre, sin cache.
2. Sesión cacheada vigente (expire > now + margen): tenant token, o app token.
3. Autenticación nueva con app_id/app_secret.

Las renovaciones se serializan con un asyncio.Lock: llamadas concurrentes
durante la expiración esperan a la primera y reutilizan su resultado.
La sesión no se persiste; se pierde al reiniciar el proceso.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
from loguru import logger

from erp_bridge.shared.exceptions.lark import (
    AuthenticationFailedException,
    LarkApiError,
    MissingCredentialsException,
)

AUTH_PATH = "/open-apis/auth/v3/app_access_token/internal"


@dataclass(frozen=True)
class LarkSession:
    """Tokens vigentes y su expiración absoluta (epoch seconds)."""

    app_access_token: Optional[str] = None
    tenant_access_token: Optional[str] = None
    expire: Optional[int] = None

    def is_valid(self, now: float, safety_margin: int) -> bool:
        return bool(self.expire) and self.expire > now + safety_margin

    @property
    def preferred_token(self) -> Optional[str]:
        # Las APIs de bitable suelen requerir el tenant token
        return self.tenant_access_token or self.app_access_token


class LarkTokenManager:
    def __init__(
        self,
        *,
        base_url: str,
        app_id: str = "",
        app_secret: str = "",
        static_token: str = "",
        safety_margin_seconds: int = 5,
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._app_id = app_id
        self._app_secret = app_secret
        self._static_token = static_token
        self._safety_margin = safety_margin_seconds
        self._timeout_s = timeout_s
        self._transport = transport
        self._clock = clock
        self._session: Optional[LarkSession] = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> Optional[LarkSession]:
        return self._session

    def set_session(self, session: Optional[LarkSession]) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None

    def _cached_token(self) -> Optional[str]:
        sess = self._session
        if sess and sess.is_valid(self._clock(), self._safety_margin):
            return sess.preferred_token
        return None

    async def get_token(self) -> str:
        if self._static_token:
            return self._static_token

        token = self._cached_token()
        if token:
            return token

        async with self._lock:
            # Otra tarea pudo renovar mientras esperabamos el lock
            token = self._cached_token()
            if token:
                return token

            sess = await self.authenticate()
            return sess.app_access_token

    async def authenticate(self) -> LarkSession:
        """
        Autentica la app y reemplaza la sesión cacheada completa.

        Respuesta esperada: {code, msg, app_access_token, tenant_access_token?, expire}
        """
        if not self._app_id or not self._app_secret:
            raise MissingCredentialsException()

        url = f"{self._base_url}{AUTH_PATH}"
        async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
            response = await client.post(
                url,
                json={"app_id": self._app_id, "app_secret": self._app_secret},
            )

        if response.status_code >= 400:
            raise LarkApiError(response.status_code, safe_json(response), url=url)

        data: dict[str, Any] = safe_json(response) or {}
        if not isinstance(data, dict):
            raise AuthenticationFailedException()

        ttl = int(data.get("expire") or 0)
        now = int(self._clock())
        sess = LarkSession(
            app_access_token=data.get("app_access_token"),
            tenant_access_token=data.get("tenant_access_token"),
            expire=now + ttl,
        )
        self._session = sess

        if not sess.app_access_token:
            logger.error(f"Autenticación Lark sin token: code={data.get('code')} msg={data.get('msg')}")
            raise AuthenticationFailedException(data.get("code"), data.get("msg"))

        logger.info(f"Token de Lark renovado, expira en {ttl}s")
        return sess

    def summary(self) -> dict[str, Any]:
        """Estado de la sesión sin exponer los tokens."""
        sess = self._session
        return {
            "static_token": bool(self._static_token),
            "has_app_token": bool(sess and sess.app_access_token),
            "has_tenant_token": bool(sess and sess.tenant_access_token),
            "expire": sess.expire if sess else None,
            "valid": bool(sess and sess.is_valid(self._clock(), self._safety_margin)),
        }


def safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text

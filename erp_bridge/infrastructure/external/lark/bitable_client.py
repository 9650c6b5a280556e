"""
Cliente mínimo del API Bitable de Lark (httpx async).

Operaciones cubiertas:
- listar campos de una tabla
- buscar registros con filtro estructurado
- crear / actualizar registros en lote

Sin reintentos: un error remoto se propaga con su status y body intactos
(LarkApiError; LarkBusinessError si Lark responde 2xx con `code` != 0);
timeouts y errores de conexión se propagan como errores de httpx.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx
from loguru import logger

from erp_bridge.shared.exceptions.lark import (
    LarkApiError,
    LarkBusinessError,
    MissingTokenException,
)

from .token_manager import LarkTokenManager, safe_json

BITABLE_PATH = "/open-apis/bitable/v1/apps"


class BitableClient:
    """
    Cliente HTTP de Bitable. Cada llamada obtiene el token del LarkTokenManager
    salvo que el caller pase `token` explícito.
    """

    def __init__(
        self,
        token_manager: LarkTokenManager,
        *,
        base_url: str = "https://open.larksuite.com",
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._tokens = token_manager
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport

    def _table_url(self, app_id: str, table_id: str, suffix: str) -> str:
        return (
            f"{self._base_url}{BITABLE_PATH}/{quote(app_id, safe='')}"
            f"/tables/{quote(table_id, safe='')}/{suffix}"
        )

    async def _resolve_token(self, token: Optional[str]) -> str:
        resolved = token or await self._tokens.get_token()
        if not resolved:
            raise MissingTokenException()
        return resolved

    async def _request(
        self,
        method: str,
        url: str,
        *,
        token: Optional[str],
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        bearer = await self._resolve_token(token)
        headers = {
            "Authorization": f"Bearer {bearer}",
            "Content-Type": "application/json; charset=utf-8",
        }
        async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
            response = await client.request(method, url, params=params, json=json, headers=headers)

        body = safe_json(response)
        if not 200 <= response.status_code < 300:
            logger.warning(f"Lark {method} {url} -> HTTP {response.status_code}: {body}")
            raise LarkApiError(response.status_code, body, url=url)

        # Lark reporta errores de negocio con HTTP 200 y `code` != 0
        if isinstance(body, dict) and body.get("code", 0) != 0:
            logger.warning(f"Lark {method} {url} -> code {body.get('code')}: {body.get('msg')}")
            raise LarkBusinessError(body, url=url, http_status=response.status_code)
        return body

    async def list_fields(
        self,
        app_id: str,
        table_id: str,
        *,
        page_size: Optional[int] = None,
        view_id: Optional[str] = None,
        token: Optional[str] = None,
    ) -> Any:
        params: dict[str, Any] = {"page_size": page_size or 20}
        if view_id:
            params["view_id"] = view_id
        return await self._request(
            "GET",
            self._table_url(app_id, table_id, "fields"),
            token=token,
            params=params,
        )

    async def search_records(
        self,
        app_id: str,
        table_id: str,
        payload: dict[str, Any],
        *,
        page_size: Optional[int] = None,
        token: Optional[str] = None,
    ) -> Any:
        params = {"page_size": page_size} if page_size else None
        return await self._request(
            "POST",
            self._table_url(app_id, table_id, "records/search"),
            token=token,
            params=params,
            json=payload,
        )

    async def batch_create_records(
        self,
        app_id: str,
        table_id: str,
        records: list[dict[str, Any]],
        *,
        token: Optional[str] = None,
    ) -> Any:
        """`records` son mapas de campos; se envuelven como {"fields": ...}."""
        return await self._request(
            "POST",
            self._table_url(app_id, table_id, "records/batch_create"),
            token=token,
            json={"records": [{"fields": fields} for fields in records]},
        )

    async def batch_update_records(
        self,
        app_id: str,
        table_id: str,
        records: list[dict[str, Any]],
        *,
        token: Optional[str] = None,
    ) -> Any:
        """`records` con forma {"record_id": ..., "fields": {...}}."""
        return await self._request(
            "POST",
            self._table_url(app_id, table_id, "records/batch_update"),
            token=token,
            json={"records": records},
        )

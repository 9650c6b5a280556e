"""
Sincronización one-way: vista de productos (SQL Server) -> Lark Bitable.

Diseño (resumen):
- Lee la vista `productos` paginada (page 1, 2, ...) vía ResourceRepository
- Por cada fila busca en Bitable un registro con el mismo productId
- Si existe lo actualiza (batch_update de 1), si no lo crea (batch_create de 1)
- Termina cuando una página viene vacía o con menos filas que db_page_size

Estrategia de errores:
- Un fallo por item (search/create/update) se registra en `errors` y se sigue
  con el siguiente item; nunca aborta la corrida.
- Un fallo leyendo una página de origen SÍ aborta (SyncAbortedError).

Idempotencia: se puede ejecutar N veces; el match por productId evita duplicados.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterable, Optional

from loguru import logger

from erp_bridge.infrastructure.database.query_builder import QuerySpec
from erp_bridge.infrastructure.external.lark.bitable_client import BitableClient
from erp_bridge.infrastructure.repositories.resource_repository import ResourceRepository
from erp_bridge.shared.exceptions.lark import LarkApiError, LarkBusinessError, SyncAbortedError

SOURCE_RESOURCE = "productos"
KEY_FIELD = "productId"
KEY_FIELD_VARIANTS = ("productId", "ProductId", "productid", "PRODUCTID")
RECORD_ID_VARIANTS = ("record_id", "recordId", "id")

DEFAULT_DB_PAGE_SIZE = 100
DEFAULT_SEARCH_PAGE_SIZE = 20


@dataclass
class SyncError:
    key: Optional[str]
    error: str


@dataclass
class SyncResult:
    """Acumulado de una corrida. Solo crece: un error no descuenta lo ya hecho."""

    created: int = 0
    updated: int = 0
    errors: list[SyncError] = field(default_factory=list)

    def add_error(self, key: Optional[str], error: str) -> None:
        self.errors.append(SyncError(key=key, error=error))

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "errors": [{"key": e.key, "error": e.error} for e in self.errors],
        }


def extract_key(row: dict[str, Any]) -> Optional[str]:
    """productId de la fila, tolerando variantes de mayusculas."""
    for name in KEY_FIELD_VARIANTS:
        value = row.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def build_search_payload(key: str, view_id: Optional[str] = None) -> dict[str, Any]:
    """
    Filtro Bitable: registros cuyo productId es igual a `key`.

    Estructura fija: grupo externo "and" con un hijo "or" de una condición.
    """
    payload: dict[str, Any] = {
        "filter": {
            "conjunction": "and",
            "conditions": [],
            "children": [
                {
                    "conjunction": "or",
                    "conditions": [
                        {"field_name": KEY_FIELD, "operator": "is", "value": [key]},
                    ],
                }
            ],
        }
    }
    if view_id:
        payload["view_id"] = view_id
    return payload


def extract_records(response: Any) -> list[dict[str, Any]]:
    """
    Normaliza la lista de registros de una respuesta de search.

    Es tolerante a la forma de la respuesta entre versiones del API: toma la
    primera lista no vacía entre `records`, `data.records`, `items` y
    `data.items`.
    """
    if not isinstance(response, dict):
        return []
    data = response.get("data") if isinstance(response.get("data"), dict) else {}
    for candidate in (
        response.get("records"),
        data.get("records"),
        response.get("items"),
        data.get("items"),
    ):
        if isinstance(candidate, list) and candidate:
            return candidate
    return []


def extract_record_id(record: dict[str, Any]) -> Optional[str]:
    for name in RECORD_ID_VARIANTS:
        value = record.get(name)
        if value:
            return str(value)
    return None


def _to_field_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    return value


def row_to_fields(row: dict[str, Any]) -> dict[str, Any]:
    """
    Mapea una fila de la vista a campos de Bitable.

    Los nombres de columna se usan tal cual como nombres de campo; los nulos
    se omiten para no vaciar campos existentes.
    """
    return {
        column: _to_field_value(value)
        for column, value in row.items()
        if value is not None
    }


def describe_error(exc: Exception) -> str:
    if isinstance(exc, LarkBusinessError):
        return f"Lark code {exc.remote_code}: {exc.remote_msg}"
    if isinstance(exc, LarkApiError):
        return f"HTTP {exc.status_code}: {exc.body}"
    return str(exc) or exc.__class__.__name__


class BitableSyncUseCases:
    """
    Orquestador de la sincronización productos -> Bitable.
    """

    def __init__(
        self,
        *,
        repository: ResourceRepository,
        client: BitableClient,
        resource: str = SOURCE_RESOURCE,
    ) -> None:
        self._repository = repository
        self._client = client
        self._resource = resource

    async def _fetch_page(self, page: int, db_page_size: int) -> list[dict[str, Any]]:
        spec = QuerySpec(resource=self._resource, page=page, page_size=db_page_size)
        try:
            result = await self._repository.list(spec)
        except Exception as e:
            logger.error(f"Sync abortado: no se pudo leer la página {page} de '{self._resource}': {e}")
            raise SyncAbortedError(page, e) from e
        return list(result.get("items") or [])

    async def sync_products_to_bitable(
        self,
        *,
        app_id: str,
        table_id: str,
        view_id: Optional[str] = None,
        db_page_size: int = DEFAULT_DB_PAGE_SIZE,
        page_size: int = DEFAULT_SEARCH_PAGE_SIZE,
    ) -> SyncResult:
        """
        Ejecuta una corrida completa de reconciliación.

        Args:
            app_id: App token del Bitable
            table_id: Tabla destino
            view_id: Vista opcional para acotar la busqueda
            db_page_size: Filas por página leidas de la base de datos
            page_size: page_size de la busqueda en Bitable

        Returns:
            SyncResult con creados, actualizados y errores por item
        """
        db_page_size = max(int(db_page_size or DEFAULT_DB_PAGE_SIZE), 1)
        result = SyncResult()
        page = 1

        logger.info(
            f"Sync '{self._resource}' -> Bitable {app_id}/{table_id} "
            f"(db_page_size={db_page_size}, page_size={page_size})"
        )

        while True:
            items = await self._fetch_page(page, db_page_size)
            logger.debug(f"Página {page}: {len(items)} fila(s)")
            if not items:
                break

            await self._process_items(
                items,
                result=result,
                app_id=app_id,
                table_id=table_id,
                view_id=view_id,
                page_size=page_size,
            )

            if len(items) < db_page_size:
                break
            page += 1

        logger.info(
            f"Sync completado. creados={result.created}, actualizados={result.updated}, "
            f"errores={len(result.errors)}"
        )
        return result

    async def _process_items(
        self,
        items: Iterable[dict[str, Any]],
        *,
        result: SyncResult,
        app_id: str,
        table_id: str,
        view_id: Optional[str],
        page_size: int,
    ) -> None:
        for row in items:
            key: Optional[str] = None
            try:
                key = extract_key(row)
                if key is None:
                    continue
                await self._upsert_row(
                    row,
                    key=key,
                    result=result,
                    app_id=app_id,
                    table_id=table_id,
                    view_id=view_id,
                    page_size=page_size,
                )
            except Exception as e:
                message = describe_error(e)
                logger.warning(f"Error sincronizando productId={key}: {message}")
                result.add_error(key, message)

    async def _upsert_row(
        self,
        row: dict[str, Any],
        *,
        key: str,
        result: SyncResult,
        app_id: str,
        table_id: str,
        view_id: Optional[str],
        page_size: int,
    ) -> None:
        fields = row_to_fields(row)
        response = await self._client.search_records(
            app_id,
            table_id,
            build_search_payload(key, view_id),
            page_size=page_size,
        )
        matches = extract_records(response)

        if not matches:
            await self._client.batch_create_records(app_id, table_id, [fields])
            result.created += 1
            return

        record_id = extract_record_id(matches[0])
        if not record_id:
            result.add_error(key, "no identifier found")
            return

        await self._client.batch_update_records(
            app_id,
            table_id,
            [{"record_id": record_id, "fields": fields}],
        )
        result.updated += 1

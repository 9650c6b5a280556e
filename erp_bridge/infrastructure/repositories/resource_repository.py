"""
Repositorio genérico de recursos (vistas SQL Server).
Ejecuta las consultas del query builder y da forma a los resultados.
"""
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from erp_bridge.domain.resources import ResourceRegistry, default_registry
from erp_bridge.infrastructure.database.query_builder import (
    BuiltQuery,
    QuerySpec,
    build_count_query,
    build_get_by_id_query,
    build_list_query,
    build_order_by_customer_and_bill_query,
    build_orders_by_customer_query,
)
from erp_bridge.shared.exceptions.domain import (
    QueryExecutionError,
    ResourceNotFoundException,
)


class ResourceRepository:
    """Repositorio de solo lectura sobre las vistas registradas."""

    def __init__(self, db: AsyncSession, registry: ResourceRegistry = default_registry):
        self.db = db
        self.registry = registry

    async def _fetch_all(self, query: BuiltQuery) -> List[Dict[str, Any]]:
        result = await self.db.execute(text(query.sql), query.params)
        return [dict(row) for row in result.mappings().all()]

    async def _fetch_all_or_raise(self, query: BuiltQuery, label: str) -> List[Dict[str, Any]]:
        """
        Ejecuta y envuelve errores del driver en QueryExecutionError.
        El SQL y los parámetros se loguean aquí, nunca se devuelven al cliente.
        """
        try:
            return await self._fetch_all(query)
        except SQLAlchemyError as e:
            logger.error(
                f"Error ejecutando SQL de {label}: {query.sql} | params={query.params} | error={e}"
            )
            raise QueryExecutionError(
                message=f"Error ejecutando consulta de {label}",
                sql=query.sql,
                params=query.params,
            ) from e

    async def list(self, spec: QuerySpec) -> Dict[str, Any]:
        """
        Lista paginada de un recurso.

        Returns:
            {items, page, size, total}
        """
        cfg = self.registry.resolve(spec.resource)
        items_query = build_list_query(cfg, spec)
        count_query = build_count_query(cfg, spec)

        items = await self._fetch_all_or_raise(items_query, "items")
        count_rows = await self._fetch_all_or_raise(count_query, "count")
        total = int((count_rows[0].get("cnt") if count_rows else 0) or 0)

        return {
            "items": items,
            "page": spec.normalized_page,
            "size": spec.normalized_page_size,
            "total": total,
        }

    async def get_by_id(
        self,
        resource: str,
        item_id: Any,
        id_column: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Retorna el primer registro que coincide o None."""
        cfg = self.registry.resolve(resource)
        query = build_get_by_id_query(cfg, item_id, id_column)
        rows = await self._fetch_all_or_raise(query, "item")
        return rows[0] if rows else None

    async def get_order_by_customer_and_bill(
        self,
        resource: str,
        customer_code: str,
        bill_code: str,
    ) -> Dict[str, Any]:
        """
        Busca una orden por cliente y factura probando las vistas candidatas
        en orden. Una vista que falla o no trae filas se salta.
        """
        cfg = self.registry.resolve(resource)
        for view in cfg.view_candidates:
            query = build_order_by_customer_and_bill_query(view, customer_code, bill_code)
            try:
                rows = await self._fetch_all(query)
            except SQLAlchemyError as e:
                logger.warning(f"Vista candidata '{view}' falló para {resource}: {e}")
                continue
            if rows:
                return rows[0]
        raise ResourceNotFoundException(resource)

    async def list_orders_by_customer(self, resource: str, customer_code: str) -> List[Dict[str, Any]]:
        """Ordenes de un cliente, más recientes primero, desde la primera vista que responde."""
        cfg = self.registry.resolve(resource)
        for view in cfg.view_candidates:
            query = build_orders_by_customer_query(view, customer_code)
            try:
                return await self._fetch_all(query)
            except SQLAlchemyError as e:
                logger.warning(f"Vista candidata '{view}' falló para {resource}: {e}")
        raise ResourceNotFoundException(resource)

"""
Casos de uso de recursos: traducen parámetros HTTP crudos a QuerySpec
y delegan en el repositorio.
"""
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from erp_bridge.core.config import settings
from erp_bridge.domain.resources import NO_SORT, MatchMode, SortDirection
from erp_bridge.infrastructure.database.query_builder import QuerySpec
from erp_bridge.infrastructure.repositories.resource_repository import ResourceRepository
from erp_bridge.shared.exceptions.domain import InvalidParameterException


def _to_positive_int(value: Any, default: int) -> int:
    """Convierte a int >= 1; valores no numéricos usan el default."""
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        number = default
    return max(number, 1)


def build_query_spec(
    resource: str,
    *,
    page: Any = 1,
    size: Any = None,
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    filters: Optional[Mapping[str, Any]] = None,
    match: Optional[str] = None,
    max_page_size: Optional[int] = None,
) -> QuerySpec:
    """
    Normaliza los parámetros del listado.

    - page y size siempre >= 1; size se limita a `max_page_size` si se indica
    - sort vacío equivale al centinela "sin orden"
    """
    page_size = _to_positive_int(size, settings.DEFAULT_PAGE_SIZE)
    if max_page_size:
        page_size = min(page_size, max_page_size)
    return QuerySpec(
        resource=resource,
        page=_to_positive_int(page, 1),
        page_size=page_size,
        sort=(sort or NO_SORT).strip() or NO_SORT,
        direction=SortDirection.parse(direction),
        filters=dict(filters or {}),
        match=MatchMode.parse(match),
    )


class ResourceUseCases:
    """Casos de uso de consulta de recursos."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = ResourceRepository(db)

    async def list_items(
        self,
        resource: str,
        *,
        page: Any = 1,
        size: Any = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
        filters: Optional[Mapping[str, Any]] = None,
        match: Optional[str] = None,
    ) -> Dict[str, Any]:
        spec = build_query_spec(
            resource,
            page=page,
            size=size,
            sort=sort,
            direction=direction,
            filters=filters,
            match=match,
            max_page_size=settings.MAX_PAGE_SIZE,
        )
        return await self.repository.list(spec)

    async def get_item(
        self,
        resource: str,
        item_id: str,
        id_column: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        return await self.repository.get_by_id(resource, item_id, id_column or None)

    async def get_order(self, resource: str, customer_code: str, bill_code: str) -> Dict[str, Any]:
        customer_code = (customer_code or "").strip()
        bill_code = (bill_code or "").strip()
        if not customer_code:
            raise InvalidParameterException("customercode")
        if not bill_code:
            raise InvalidParameterException("billcode")
        return await self.repository.get_order_by_customer_and_bill(resource, customer_code, bill_code)

    async def list_orders(self, resource: str, customer_code: str) -> List[Dict[str, Any]]:
        customer_code = (customer_code or "").strip()
        if not customer_code:
            raise InvalidParameterException("customercode")
        return await self.repository.list_orders_by_customer(resource, customer_code)

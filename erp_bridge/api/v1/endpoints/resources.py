"""
Endpoints genéricos de recursos (vistas whitelisteadas de SQL Server).
"""
from typing import Dict, Optional, Union

from fastapi import APIRouter, Depends, Query, Request

from erp_bridge.application.dto.resource_dto import (
    ItemResponseDTO,
    OrderResponseDTO,
    OrdersResponseDTO,
    ResourceListResponseDTO,
)
from erp_bridge.application.use_cases.resource_use_cases import ResourceUseCases
from erp_bridge.api.v1.dependencies.use_case_deps import get_resource_use_cases
from erp_bridge.shared.exceptions.domain import ItemNotFoundException

router = APIRouter(tags=["Resources"])


def parse_filters(request: Request) -> Dict[str, str]:
    """
    Extrae filtros con forma `filter[Col]=valor` del query string.
    Valores vacíos se ignoran.
    """
    filters: Dict[str, str] = {}
    for key, value in request.query_params.multi_items():
        if key.startswith("filter[") and key.endswith("]") and len(key) > 8:
            val = (value or "").strip()
            if val:
                filters[key[7:-1]] = val
    return filters


@router.get("/{res}/items", response_model=ResourceListResponseDTO)
async def list_items(
    res: str,
    request: Request,
    page: str = Query(default="1", description="Página (>= 1)"),
    size: Optional[str] = Query(default=None, description="Tamaño de página (max MAX_PAGE_SIZE)"),
    sort: str = Query(default="1", description="Columna de orden whitelisteada; '1' = sin orden"),
    dir: str = Query(default="asc", description="asc | desc"),
    match: str = Query(default="contains", description="contains | starts | ends | exact"),
    use_cases: ResourceUseCases = Depends(get_resource_use_cases)
):
    """
    Lista items desde una vista permitida.

    Filtros por columna whitelisteada: `filter[Columna]=valor`.
    """
    data = await use_cases.list_items(
        res,
        page=page,
        size=size,
        sort=sort,
        direction=dir,
        filters=parse_filters(request),
        match=match,
    )
    return {"data": data}


@router.get("/{res}/items/{item_id}", response_model=ItemResponseDTO)
async def get_item(
    res: str,
    item_id: str,
    id_col: Optional[str] = Query(default=None, alias="idCol", description="Columna ID; por defecto la pk"),
    use_cases: ResourceUseCases = Depends(get_resource_use_cases)
):
    """
    Obtiene un item por ID.
    """
    item = await use_cases.get_item(res, item_id, id_col)
    if item is None:
        raise ItemNotFoundException(res, item_id)
    return {"data": {"item": item}}


@router.get("/{res}/orders", response_model=Union[OrderResponseDTO, OrdersResponseDTO])
async def get_orders(
    res: str,
    customercode: str = Query(default="", description="Código del cliente"),
    billcode: Optional[str] = Query(default=None, description="Código de factura (opcional)"),
    use_cases: ResourceUseCases = Depends(get_resource_use_cases)
):
    """
    Obtiene las ordenes de un cliente, o una orden específica si se envia billcode.
    """
    if billcode and billcode.strip():
        order = await use_cases.get_order(res, customercode, billcode)
        return {"data": {"order": order}}

    orders = await use_cases.list_orders(res, customercode)
    return {"data": {"orders": orders}}


@router.get("/{res}/orders/{billcode}", response_model=OrderResponseDTO)
async def get_order(
    res: str,
    billcode: str,
    customercode: str = Query(default="", description="Código del cliente"),
    use_cases: ResourceUseCases = Depends(get_resource_use_cases)
):
    """
    Obtiene una orden específica por billcode y customercode.
    """
    order = await use_cases.get_order(res, customercode, billcode)
    return {"data": {"order": order}}

"""
Endpoints de la integración con Lark Bitable.
Permite consultar campos de una tabla y sincronizar productos desde la UI.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from erp_bridge.application.dto.lark_dto import (
    LarkFieldsResponseDTO,
    LarkSyncRequestDTO,
    SyncResultDTO,
)
from erp_bridge.api.v1.dependencies.use_case_deps import get_bitable, get_sync_runner
from erp_bridge.infrastructure.external.lark import BitableClient
from erp_bridge.shared.exceptions.domain import InvalidParameterException


router = APIRouter(prefix="/lark", tags=["Lark"])


@router.get("/fields", response_model=LarkFieldsResponseDTO)
async def get_lark_fields(
    app_id: str = Query(default="", alias="appId"),
    table_id: str = Query(default="", alias="tableId"),
    page_size: Optional[int] = Query(default=None, alias="pageSize", ge=1, le=500),
    view_id: Optional[str] = Query(default=None, alias="viewId"),
    client: BitableClient = Depends(get_bitable)
) -> LarkFieldsResponseDTO:
    """
    Lista los campos de una tabla Bitable.
    Los errores del API de Lark se devuelven con su status y body originales.
    """
    app_id = app_id.strip()
    table_id = table_id.strip()
    if not app_id or not table_id:
        raise InvalidParameterException("app_or_table")

    data = await client.list_fields(app_id, table_id, page_size=page_size, view_id=view_id or None)
    return LarkFieldsResponseDTO(data=data)


@router.post(
    "/sync",
    response_model=SyncResultDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar productos con Lark Bitable"
)
async def sync_products(
    dto: LarkSyncRequestDTO,
    run_sync=Depends(get_sync_runner)
) -> SyncResultDTO:
    """
    Ejecuta la sincronización productos -> Bitable.

    - Busca cada producto por productId y lo actualiza o lo crea
    - Los errores por producto se devuelven en `errors` sin abortar la corrida
    - Si ya hay una corrida en curso (cron), espera a que termine
    """
    logger.info(f"Iniciando sync de productos -> Bitable {dto.app_id}/{dto.table_id} desde API")
    result = await run_sync(
        app_id=dto.app_id,
        table_id=dto.table_id,
        view_id=dto.view_id,
        db_page_size=dto.db_page_size,
        page_size=dto.page_size,
    )
    return SyncResultDTO(**result.to_dict())

"""
DTOs de la integración con Lark Bitable.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LarkSyncRequestDTO(BaseModel):
    """Parámetros de una corrida manual de sync productos -> Bitable."""
    model_config = ConfigDict(populate_by_name=True)

    app_id: str = Field(..., alias="appId", min_length=1, description="App token del Bitable")
    table_id: str = Field(..., alias="tableId", min_length=1, description="ID de la tabla destino")
    view_id: Optional[str] = Field(None, alias="viewId")
    db_page_size: int = Field(100, alias="dbPageSize", ge=1, le=1000)
    page_size: int = Field(20, alias="pageSize", ge=1, le=500)


class SyncErrorDTO(BaseModel):
    key: Optional[str] = None
    error: str


class SyncResultDTO(BaseModel):
    """Resultado agregado de una corrida de sync."""
    created: int = 0
    updated: int = 0
    errors: List[SyncErrorDTO] = Field(default_factory=list)


class LarkFieldsResponseDTO(BaseModel):
    data: Any

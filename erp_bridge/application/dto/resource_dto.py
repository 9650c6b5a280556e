"""
DTOs de los endpoints de recursos.
Los items son filas de vistas arbitrarias, por eso viajan como dict.
"""
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class ResourcePageDTO(BaseModel):
    """Página de un listado de recurso."""
    items: List[Dict[str, Any]] = Field(default_factory=list)
    page: int = Field(..., ge=1)
    size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)


class ResourceListResponseDTO(BaseModel):
    data: ResourcePageDTO


class ItemDTO(BaseModel):
    item: Dict[str, Any]


class ItemResponseDTO(BaseModel):
    data: ItemDTO


class OrderDTO(BaseModel):
    order: Dict[str, Any]


class OrderResponseDTO(BaseModel):
    data: OrderDTO


class OrdersDTO(BaseModel):
    orders: List[Dict[str, Any]]


class OrdersResponseDTO(BaseModel):
    data: OrdersDTO

"""
Registro de recursos consultables.

Cada recurso apunta a una vista de SQL Server y declara que columnas se
exponen para ordenar y filtrar. El registro es inmutable y se valida al
importar el módulo: un identificador inválido rompe el arranque, no un request.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from erp_bridge.shared.exceptions.domain import (
    InvalidIdentifierException,
    UnknownResourceException,
)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

# Valor de `sort` que significa "sin ordenamiento solicitado"
NO_SORT = "1"


class MatchMode(str, Enum):
    """Modo de comparación de los filtros."""

    CONTAINS = "contains"
    STARTS = "starts"
    ENDS = "ends"
    EXACT = "exact"

    @classmethod
    def parse(cls, value: Optional[str]) -> "MatchMode":
        """Valor desconocido o vacío -> contains."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.CONTAINS


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortDirection":
        """Solo 'desc' (sin importar mayusculas) es descendente."""
        return cls.DESC if (value or "").strip().lower() == "desc" else cls.ASC


def is_valid_identifier(name: str) -> bool:
    return bool(name) and IDENTIFIER_PATTERN.match(name) is not None


@dataclass(frozen=True)
class ResourceConfig:
    """
    Configuración de un recurso.

    - view: vista de SQL Server a consultar
    - pk: columna clave (opcional); se usa como orden por defecto y para get_by_id
    - allow_sort / allow_filter: whitelists independientes
    - fallback_views: vistas alternativas para las consultas de ordenes,
      se prueban en orden después de `view`
    """

    name: str
    view: str
    pk: Optional[str] = None
    allow_sort: frozenset[str] = field(default_factory=frozenset)
    allow_filter: frozenset[str] = field(default_factory=frozenset)
    fallback_views: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for ident in (
            self.view,
            self.pk,
            *self.allow_sort,
            *self.allow_filter,
            *self.fallback_views,
        ):
            if ident is not None and not is_valid_identifier(ident):
                raise InvalidIdentifierException(ident)

    @property
    def view_candidates(self) -> tuple[str, ...]:
        return (self.view, *self.fallback_views)


def _resource(
    name: str,
    view: str,
    pk: Optional[str],
    allow_sort: list[str],
    allow_filter: list[str],
) -> ResourceConfig:
    return ResourceConfig(
        name=name,
        view=view,
        pk=pk,
        allow_sort=frozenset(allow_sort),
        allow_filter=frozenset(allow_filter),
    )


RESOURCES: Mapping[str, ResourceConfig] = {
    cfg.name: cfg
    for cfg in (
        _resource(
            "productos",
            view="view_ProductsPricesRegions",
            pk="productId",
            allow_sort=["productId", "CodigoProducto", "Especificacion"],
            allow_filter=["productId", "CodigoProducto", "Especificacion", "Descripcion"],
        ),
        _resource(
            "inventories",
            view="vw_inventories",
            pk="code",
            allow_sort=["code", "aviableQuantity"],
            allow_filter=["code", "spec", "warehouseCategory", "warehouseCode"],
        ),
        _resource(
            "customers",
            view="getCustomers",
            pk="customer_id",
            allow_sort=["customer_id", "customer_code"],
            allow_filter=["customer_id", "customer_code"],
        ),
        _resource(
            "orders",
            view="vw_AllOrders_Bamboo",
            pk="BillCode",
            allow_sort=["BillCode", "customerCode"],
            allow_filter=["BillCode", "customerCode"],
        ),
    )
}


class ResourceRegistry:
    """Lookup puro sobre un mapeo nombre -> ResourceConfig."""

    def __init__(self, resources: Mapping[str, ResourceConfig] = RESOURCES) -> None:
        self._resources = dict(resources)

    def resolve(self, name: str) -> ResourceConfig:
        cfg = self._resources.get(name)
        if cfg is None:
            raise UnknownResourceException(name)
        return cfg

    def names(self) -> list[str]:
        return sorted(self._resources)


default_registry = ResourceRegistry()

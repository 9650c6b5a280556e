"""
Construccion de SQL parametrizado (dialecto SQL Server) para recursos.

Reglas:
- Los valores SIEMPRE viajan como parámetros (`:p1`, `:off`, ...).
- Los identificadores (vistas/columnas) no pueden ir como parámetros, por eso
  se validan contra `^[A-Za-z0-9_]+$` y se envuelven en corchetes.
- Sin I/O: este módulo solo produce texto + parámetros, se testea aislado.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from erp_bridge.domain.resources import (
    NO_SORT,
    MatchMode,
    ResourceConfig,
    SortDirection,
    is_valid_identifier,
)
from erp_bridge.shared.exceptions.domain import (
    InvalidIdColumnException,
    InvalidIdentifierException,
    InvalidSortException,
)

# Columna usada por get_by_id cuando el recurso no declara pk
DEFAULT_ID_COLUMN = "Id"

# OFFSET/FETCH exige ORDER BY en SQL Server; sin columna se usa un orden neutro
NEUTRAL_ORDER = "ORDER BY (SELECT NULL)"

CUSTOMER_COLUMN = "customerCode"
BILL_COLUMN = "BillCode"
CREATED_AT_COLUMN = "CreateDate"


@dataclass(frozen=True)
class QuerySpec:
    """Parámetros (ya parseados) de un listado paginado."""

    resource: str
    page: int = 1
    page_size: int = 50
    sort: Optional[str] = None
    direction: SortDirection = SortDirection.ASC
    filters: Mapping[str, Any] = field(default_factory=dict)
    match: MatchMode = MatchMode.CONTAINS

    @property
    def normalized_page(self) -> int:
        return max(int(self.page or 1), 1)

    @property
    def normalized_page_size(self) -> int:
        return max(int(self.page_size or 1), 1)

    @property
    def offset(self) -> int:
        return (self.normalized_page - 1) * self.normalized_page_size


@dataclass(frozen=True)
class BuiltQuery:
    sql: str
    params: dict[str, Any]


def quote_identifier(name: str) -> str:
    if not is_valid_identifier(name or ""):
        raise InvalidIdentifierException(name)
    return f"[{name}]"


def escape_like(value: str) -> str:
    """Escapa los comodines de LIKE (`\\`, `%`, `_`) con backslash."""
    return "".join("\\" + ch if ch in ("\\", "%", "_") else ch for ch in value)


def resolve_sort(cfg: ResourceConfig, sort: Optional[str]) -> Optional[str]:
    if sort is None or sort == "" or sort == NO_SORT:
        return None
    if sort not in cfg.allow_sort:
        raise InvalidSortException(sort, sorted(cfg.allow_sort))
    return sort


def resolve_filters(cfg: ResourceConfig, filters: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """
    Filtra contra la whitelist del recurso.

    Columnas desconocidas y valores vacíos se descartan en silencio;
    los valores aceptados se recortan.
    """
    out: dict[str, str] = {}
    for column, raw in (filters or {}).items():
        if column not in cfg.allow_filter:
            continue
        value = "" if raw is None else str(raw).strip()
        if not value:
            continue
        out[column] = value
    return out


def _like_pattern(value: str, match: MatchMode) -> str:
    escaped = escape_like(value)
    if match is MatchMode.STARTS:
        return f"{escaped}%"
    if match is MatchMode.ENDS:
        return f"%{escaped}"
    return f"%{escaped}%"


def build_where(filters: Mapping[str, str], match: MatchMode) -> BuiltQuery:
    """Compila los filtros ya resueltos a `WHERE ... AND ...`."""
    parts: list[str] = []
    params: dict[str, Any] = {}
    for i, (column, value) in enumerate(filters.items(), start=1):
        name = f"p{i}"
        if match is MatchMode.EXACT:
            parts.append(f"{quote_identifier(column)} = :{name}")
            params[name] = value
        else:
            parts.append(f"{quote_identifier(column)} LIKE :{name} ESCAPE '\\'")
            params[name] = _like_pattern(value, match)
    sql = f"WHERE {' AND '.join(parts)}" if parts else ""
    return BuiltQuery(sql=sql, params=params)


def build_order(cfg: ResourceConfig, sort_column: Optional[str], direction: SortDirection) -> str:
    dir_sql = "DESC" if direction is SortDirection.DESC else "ASC"
    if sort_column:
        return f"ORDER BY {quote_identifier(sort_column)} {dir_sql}"
    if cfg.pk:
        return f"ORDER BY {quote_identifier(cfg.pk)} {dir_sql}"
    return NEUTRAL_ORDER


def _join(*parts: str) -> str:
    return " ".join(p for p in parts if p)


def build_list_query(cfg: ResourceConfig, spec: QuerySpec) -> BuiltQuery:
    sort_column = resolve_sort(cfg, spec.sort)
    where = build_where(resolve_filters(cfg, spec.filters), spec.match)
    order = build_order(cfg, sort_column, spec.direction)
    sql = _join(
        f"SELECT * FROM {quote_identifier(cfg.view)}",
        where.sql,
        order,
        "OFFSET :off ROWS FETCH NEXT :sz ROWS ONLY",
    )
    params = {**where.params, "off": spec.offset, "sz": spec.normalized_page_size}
    return BuiltQuery(sql=sql, params=params)


def build_count_query(cfg: ResourceConfig, spec: QuerySpec) -> BuiltQuery:
    where = build_where(resolve_filters(cfg, spec.filters), spec.match)
    sql = _join(f"SELECT COUNT(1) AS cnt FROM {quote_identifier(cfg.view)}", where.sql)
    return BuiltQuery(sql=sql, params=dict(where.params))


def build_get_by_id_query(
    cfg: ResourceConfig,
    item_id: Any,
    id_column: Optional[str] = None,
) -> BuiltQuery:
    if cfg.pk and id_column and id_column != cfg.pk:
        raise InvalidIdColumnException(id_column, cfg.pk)
    column = id_column or cfg.pk or DEFAULT_ID_COLUMN
    sql = (
        f"SELECT TOP 1 * FROM {quote_identifier(cfg.view)} "
        f"WHERE {quote_identifier(column)} = :id"
    )
    return BuiltQuery(sql=sql, params={"id": item_id})


def build_order_by_customer_and_bill_query(view: str, customer_code: str, bill_code: str) -> BuiltQuery:
    sql = (
        f"SELECT * FROM {quote_identifier(view)} "
        f"WHERE {quote_identifier(CUSTOMER_COLUMN)} = :cust "
        f"AND {quote_identifier(BILL_COLUMN)} = :bill"
    )
    return BuiltQuery(sql=sql, params={"cust": customer_code, "bill": bill_code})


def build_orders_by_customer_query(view: str, customer_code: str) -> BuiltQuery:
    sql = (
        f"SELECT * FROM {quote_identifier(view)} "
        f"WHERE {quote_identifier(CUSTOMER_COLUMN)} = :cust "
        f"ORDER BY {quote_identifier(CREATED_AT_COLUMN)} DESC"
    )
    return BuiltQuery(sql=sql, params={"cust": customer_code})

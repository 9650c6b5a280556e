"""
Excepciones relacionadas con los recursos consultables (vistas SQL Server).

Los `error_code` conservan los nombres que ya consumen los clientes del API
(`resource_not_found`, `invalid_sort`, ...).
"""
from typing import Any, Dict, Optional

from erp_bridge.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de entrada del cliente (4xx)."""

    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )


class UnknownResourceException(DomainException):
    """El recurso solicitado no existe en el registro."""

    def __init__(self, resource: str):
        super().__init__(
            message=f"Recurso '{resource}' no encontrado",
            error_code="resource_not_found",
            details={"resource": resource}
        )
        self.status_code = 404


class ResourceNotFoundException(DomainException):
    """Ninguna vista candidata pudo resolver la consulta."""

    def __init__(self, resource: str):
        super().__init__(
            message=f"No se encontraron datos para el recurso '{resource}'",
            error_code="resource_not_found",
            details={"resource": resource}
        )
        self.status_code = 404


class InvalidSortException(DomainException):
    """Columna de ordenamiento fuera de la whitelist del recurso."""

    def __init__(self, sort: str, allowed: list[str]):
        super().__init__(
            message=f"No se puede ordenar por '{sort}'",
            error_code="invalid_sort",
            details={"sort": sort, "allowed": allowed}
        )


class InvalidIdentifierException(DomainException):
    """Identificador (columna o vista) con caracteres no permitidos."""

    def __init__(self, identifier: str):
        super().__init__(
            message="Identificador SQL inválido",
            error_code="invalid_identifier",
            details={"identifier": identifier}
        )


class InvalidIdColumnException(DomainException):
    """Columna ID distinta a la pk declarada del recurso."""

    def __init__(self, id_column: str, pk: str):
        super().__init__(
            message=f"La columna '{id_column}' no es la pk del recurso ('{pk}')",
            error_code="invalid_idCol",
            details={"idCol": id_column, "pk": pk}
        )


class InvalidParameterException(DomainException):
    """Parámetro requerido ausente o inválido."""

    def __init__(self, parameter: str):
        super().__init__(
            message=f"Parámetro inválido o requerido: {parameter}",
            error_code=f"invalid_{parameter}",
            details={"parameter": parameter}
        )


class QueryExecutionError(AppException):
    """
    Error de ejecución en la base de datos.

    Conserva el SQL y los parámetros como atributos para diagnóstico en logs;
    no se incluyen en `details` para no exponerlos al cliente.
    """

    def __init__(
        self,
        message: str,
        sql: str,
        params: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            error_code="query_execution_error",
        )
        self.sql = sql
        self.params = dict(params or {})


class ItemNotFoundException(DomainException):
    """get_by_id no encontró filas."""

    def __init__(self, resource: str, item_id: Any):
        super().__init__(
            message=f"{resource} con ID {item_id} no encontrado",
            error_code="not_found",
            details={"resource": resource, "id": str(item_id)}
        )
        self.status_code = 404

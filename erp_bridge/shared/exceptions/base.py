"""
Excepción base del API. Cada subclase fija su status HTTP y un `error_code`
en snake_case que el cliente puede usar para distinguir el tipo de fallo.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Excepción base de la aplicación.

    El handler global de `main.py` la serializa con `to_response()`.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            message: Mensaje legible para el cliente
            status_code: Código de estado HTTP
            error_code: Tipo de error (p. ej. `invalid_sort`, `resource_not_found`)
            details: Contexto seguro de exponer; nunca SQL ni credenciales
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }

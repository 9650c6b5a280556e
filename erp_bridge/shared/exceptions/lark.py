"""
Excepciones de la integración con Lark (credenciales, API Bitable, sync).
"""
from typing import Any, Dict

from erp_bridge.shared.exceptions.base import AppException


class LarkCredentialsException(AppException):
    """Excepción base para errores de credenciales (misconfiguración, 5xx)."""

    def __init__(self, message: str, error_code: str, details=None):
        super().__init__(
            message=message,
            status_code=500,
            error_code=error_code,
            details=details
        )


class MissingCredentialsException(LarkCredentialsException):
    """No hay token estático ni app_id/app_secret configurados."""

    def __init__(self):
        super().__init__(
            message="Faltan credenciales de Lark (LARK_APP_ID / LARK_APP_SECRET)",
            error_code="missing_lark_app_credentials"
        )


class AuthenticationFailedException(LarkCredentialsException):
    """La autenticación respondió sin un token utilizable."""

    def __init__(self, remote_code: Any = None, remote_msg: Any = None):
        super().__init__(
            message="Lark no devolvió app_access_token",
            error_code="failed_lark_auth",
            details={"code": remote_code, "msg": remote_msg}
        )


class MissingTokenException(LarkCredentialsException):
    """No se pudo obtener un token para llamar al API."""

    def __init__(self):
        super().__init__(
            message="No hay token de Lark disponible",
            error_code="missing_lark_token"
        )


class LarkApiError(AppException):
    """
    Respuesta no-2xx del API de Lark.

    Se conserva el status y el body remoto tal cual para poder reenviarlos
    al cliente.
    """

    def __init__(self, status_code: int, body: Any, url: str = ""):
        super().__init__(
            message=f"Lark respondió HTTP {status_code}",
            status_code=status_code,
            error_code="lark_api_error",
        )
        self.body = body
        self.url = url


class LarkBusinessError(LarkApiError):
    """
    Lark respondió 2xx pero con `code` distinto de 0 en el body.

    Se reenvía como 502: la llamada llegó pero Lark rechazó la operación.
    """

    def __init__(self, body: Dict[str, Any], url: str = "", http_status: int = 200):
        super().__init__(502, body, url=url)
        self.error_code = "lark_business_error"
        self.http_status = http_status
        self.remote_code = body.get("code")
        self.remote_msg = body.get("msg")
        self.message = f"Lark rechazó la operación: code={self.remote_code} msg={self.remote_msg}"


class SyncAbortedError(AppException):
    """No se pudo leer una página de origen; la corrida se aborta."""

    def __init__(self, page: int, cause: Exception):
        super().__init__(
            message=f"Sync abortado leyendo la página {page}: {cause}",
            status_code=500,
            error_code="sync_aborted",
            details={"page": page}
        )
        self.page = page
        self.cause = cause

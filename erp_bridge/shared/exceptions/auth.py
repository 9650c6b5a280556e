"""
Excepciones relacionadas con autenticación por API key.
"""
from erp_bridge.shared.exceptions.base import AppException


class MissingApiKeyException(AppException):
    """No se envio el header x-api-key."""

    def __init__(self):
        super().__init__(
            message="Falta API key",
            status_code=401,
            error_code="missing_api_key"
        )


class InvalidApiKeyException(AppException):
    """El API key enviado no coincide con ninguno configurado."""

    def __init__(self):
        super().__init__(
            message="API key inválida",
            status_code=403,
            error_code="invalid_api_key"
        )

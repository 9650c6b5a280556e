"""
Middleware de último recurso: cualquier excepción que no sea AppException ni
un error de Lark termina aquí como 500 genérico.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger

INTERNAL_ERROR_CODE = "internal_error"


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convierte errores no controlados en `{"error": "internal_error"}`."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            # El traceback queda en el log; el cliente solo recibe el código
            logger.opt(exception=exc).error(
                "Error no manejado en {} {} ({})",
                request.method,
                request.url.path,
                exc.__class__.__name__,
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": INTERNAL_ERROR_CODE,
                    "message": "Error interno del servidor",
                    "details": {},
                },
            )

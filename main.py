"""
Punto de entrada principal de la aplicación FastAPI.
Configura la aplicación, middlewares, rutas y eventos.
"""
import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from erp_bridge.core.config import settings
from erp_bridge.core.events import startup_handler, shutdown_handler
from erp_bridge.api.v1.router import api_router
from erp_bridge.api.middlewares.error_handler import ErrorHandlerMiddleware
from erp_bridge.infrastructure.database.session import healthcheck
from erp_bridge.shared.exceptions.base import AppException
from erp_bridge.shared.exceptions.lark import LarkApiError


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="API de solo lectura sobre vistas de SQL Server y sync con Lark Bitable",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware personalizado para manejo de errores
    application.add_middleware(ErrorHandlerMiddleware)

    # Registrar eventos de inicio y cierre
    application.add_event_handler("startup", startup_handler(application))
    application.add_event_handler("shutdown", shutdown_handler(application))

    # Rutas protegidas por API key
    application.include_router(api_router)

    # Errores remotos de Lark: se reenvía el status y el body originales
    @application.exception_handler(LarkApiError)
    async def lark_api_error_handler(request: Request, exc: LarkApiError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.body})

    # Timeouts / errores de conexión hacia Lark
    @application.exception_handler(httpx.HTTPError)
    async def lark_transport_error_handler(request: Request, exc: httpx.HTTPError):
        logger.error(f"Error de transporte hacia Lark: {exc!r}")
        return JSONResponse(
            status_code=502,
            content={
                "error": "lark_transport_error",
                "message": "No se pudo contactar el API de Lark",
                "details": {}
            }
        )

    # Manejador global de excepciones personalizadas
    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    # Health check endpoint (público)
    @application.get("/health", tags=["Health"])
    async def health_check():
        """Endpoint para verificar el estado de la aplicación y la base de datos."""
        db = await healthcheck()
        return {
            "ok": db["connected"],
            "db": db,
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    return application


# Crear instancia de la aplicación
app = create_application()


if __name__ == "__main__":
    import uvicorn

    if settings.HOST == "0.0.0.0":
        access_host = "localhost"
    else:
        access_host = settings.HOST

    base_url = f"http://{access_host}:{settings.PORT}"

    logger.info("=" * 70)
    logger.info("URLS DISPONIBLES:")
    logger.info("=" * 70)
    logger.info(f"  Swagger UI:  {base_url}/docs")
    logger.info(f"  OpenAPI:     {base_url}/openapi.json")
    logger.info(f"  Health:      {base_url}/health")
    logger.info("=" * 70)

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )

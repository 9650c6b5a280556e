"""
Manejadores de eventos de inicio y cierre de la aplicación.
"""
from typing import Callable
from fastapi import FastAPI
from loguru import logger

from erp_bridge.core.config import settings, get_api_keys
from erp_bridge.infrastructure.database.session import assert_db, close_db
from erp_bridge.infrastructure.scheduler.lark_scheduler import create_scheduler


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicación.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Función asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicación."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            _validate_config()

            # Sin base de datos el API no tiene sentido: fallar el arranque
            await assert_db()
            logger.info("Conexión a SQL Server exitosa")

            scheduler = create_scheduler()
            if scheduler:
                scheduler.start()
            app.state.scheduler = scheduler

            logger.success("Aplicación iniciada correctamente")

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuración crítica esté presente."""
    warnings = []

    if not get_api_keys(settings.API_KEYS):
        warnings.append("API_KEYS vacía - todas las rutas /v1 responderán 403")

    if not settings.LARK_TOKEN and not (settings.LARK_APP_ID and settings.LARK_APP_SECRET):
        warnings.append("Sin LARK_TOKEN ni LARK_APP_ID/LARK_APP_SECRET - Lark no funcionara")

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicación.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Función asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicación."""
        logger.info("Cerrando aplicación...")

        scheduler = getattr(app.state, "scheduler", None)
        if scheduler:
            scheduler.shutdown(wait=False)
            logger.info("Scheduler de Lark detenido")

        await close_db()
        logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicación cerrada correctamente")

    return shutdown

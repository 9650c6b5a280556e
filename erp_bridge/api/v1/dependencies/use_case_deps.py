"""
Dependencias para inyección de casos de uso y clientes externos.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from erp_bridge.application.use_cases.resource_use_cases import ResourceUseCases
from erp_bridge.infrastructure.database.session import get_db
from erp_bridge.infrastructure.external.lark import BitableClient, get_bitable_client
from erp_bridge.infrastructure.scheduler.lark_scheduler import run_product_sync


async def get_resource_use_cases(
    db: AsyncSession = Depends(get_db)
) -> ResourceUseCases:
    """
    Dependencia para obtener los casos de uso de recursos.

    Args:
        db: Sesión de base de datos

    Returns:
        ResourceUseCases: Instancia de casos de uso de recursos
    """
    return ResourceUseCases(db)


def get_bitable() -> BitableClient:
    """Cliente Bitable que comparte el token manager del proceso."""
    return get_bitable_client()


def get_sync_runner():
    """Función que ejecuta una corrida de sync serializada con el cron."""
    return run_product_sync

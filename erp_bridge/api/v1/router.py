"""
Router principal de la API v1.
Agrupa todos los endpoints de la versión 1, protegidos por API key.
"""
from fastapi import APIRouter, Depends

from erp_bridge.api.v1.endpoints import lark, resources
from erp_bridge.core.security import require_api_key


# Router principal de la API v1
api_router = APIRouter(prefix="/v1", dependencies=[Depends(require_api_key)])

# Lark primero: /lark/fields no debe caer en las rutas genericas /{res}/...
api_router.include_router(lark.router)
api_router.include_router(resources.router)

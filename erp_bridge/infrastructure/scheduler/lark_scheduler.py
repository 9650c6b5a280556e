"""
Programación de la sincronización productos -> Bitable.

- El cron y los IDs destino vienen de settings (LARK_SYNC_*).
- Las corridas manuales (endpoint) y las del cron comparten un lock: nunca se
  solapan dos corridas en el mismo proceso.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from erp_bridge.application.use_cases.lark_sync_use_cases import (
    BitableSyncUseCases,
    SyncResult,
)
from erp_bridge.core.config import settings
from erp_bridge.infrastructure.database.session import AsyncSessionLocal
from erp_bridge.infrastructure.external.lark import get_bitable_client, get_token_manager
from erp_bridge.infrastructure.repositories.resource_repository import ResourceRepository

JOB_ID = "lark_products_sync"

_sync_lock = asyncio.Lock()


async def run_product_sync(
    *,
    app_id: str,
    table_id: str,
    view_id: Optional[str] = None,
    db_page_size: int = 100,
    page_size: int = 20,
) -> SyncResult:
    """
    Ejecuta una corrida serializada con su propia sesión de base de datos.
    Si ya hay una corrida en curso, espera a que termine.
    """
    if _sync_lock.locked():
        logger.info("Hay un sync en curso; esperando a que termine")

    async with _sync_lock:
        async with AsyncSessionLocal() as session:
            use_cases = BitableSyncUseCases(
                repository=ResourceRepository(session),
                client=get_bitable_client(),
            )
            return await use_cases.sync_products_to_bitable(
                app_id=app_id,
                table_id=table_id,
                view_id=view_id,
                db_page_size=db_page_size,
                page_size=page_size,
            )


async def scheduled_sync_job() -> Optional[dict[str, Any]]:
    """Job del cron. Los errores se loguean; el scheduler sigue vivo."""
    logger.info("[lark-scheduler] tarea activada por cron")
    logger.info(f"[lark-scheduler] sesión de token: {get_token_manager().summary()}")
    try:
        result = await run_product_sync(
            app_id=settings.LARK_SYNC_APP_ID,
            table_id=settings.LARK_SYNC_TABLE_ID,
            view_id=settings.LARK_SYNC_VIEW_ID or None,
            db_page_size=settings.LARK_SYNC_DB_PAGE_SIZE,
            page_size=settings.LARK_SYNC_PAGE_SIZE,
        )
    except Exception as e:
        logger.error(f"[lark-scheduler] error ejecutando sync: {e}")
        return None

    summary = result.to_dict()
    logger.info(f"[lark-scheduler] resultado: {summary}")
    return summary


def is_schedule_configured() -> bool:
    return bool(
        settings.LARK_SYNC_ENABLED
        and settings.LARK_SYNC_APP_ID
        and settings.LARK_SYNC_TABLE_ID
    )


def create_scheduler() -> Optional[AsyncIOScheduler]:
    """
    Crea (sin arrancar) el scheduler con el job de sync.
    Retorna None si el sync programado esta deshabilitado o incompleto.
    """
    if not settings.LARK_SYNC_ENABLED:
        return None
    if not is_schedule_configured():
        logger.warning("LARK_SYNC_ENABLED=true pero faltan LARK_SYNC_APP_ID / LARK_SYNC_TABLE_ID")
        return None

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        scheduled_sync_job,
        trigger=CronTrigger.from_crontab(settings.LARK_SYNC_CRON),
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    logger.info(f"[lark-scheduler] programado con: {settings.LARK_SYNC_CRON}")
    return scheduler

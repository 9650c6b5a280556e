"""
Gestión de sesiones de base de datos (SQL Server, solo lectura).
"""
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker
)

from erp_bridge.core.config import settings


def _create_engine_args() -> dict:
    """
    Construye los argumentos del engine según el tipo de base de datos.
    SQL Server usa pool de conexiones, SQLite (tests) no lo soporta.
    """
    args = {
        "echo": settings.DEBUG,
        "future": True,
    }

    if settings.effective_database_url.startswith("mssql"):
        args.update({
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_pre_ping": True,
        })

    return args


# Engine de base de datos
engine = create_async_engine(settings.effective_database_url, **_create_engine_args())

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Generador de sesiones de base de datos.
    Para usar como dependencia en FastAPI. No hace commit: el API es de
    solo lectura.

    Yields:
        AsyncSession: Sesión de base de datos
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def assert_db() -> None:
    """Verifica la conexión; lanza la excepción del driver si falla."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def healthcheck() -> Dict[str, Any]:
    """Estado de la conexión para el endpoint /health."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 AS ok"))
        return {"connected": True}
    except Exception as e:
        return {"connected": False, "error": str(e)}


async def close_db() -> None:
    """Cierra las conexiones de la base de datos."""
    await engine.dispose()

"""
Configuración central de la aplicación.
Gestiona variables de entorno y configuraciones globales.

La conexión a SQL Server se puede especificar completa (DATABASE_URL)
o por componentes (SQL_SERVER, SQL_DB, SQL_USER, ...).
"""
from typing import List
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuración de la aplicación.
    Lee variables de entorno y proporciona valores por defecto.
    """

    # Configuración de la aplicación
    APP_NAME: str = Field(default="ERP Bridge API")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuración del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)

    # SQL Server - Componentes separados
    SQL_SERVER: str = Field(default="localhost")
    SQL_PORT: int = Field(default=1433)
    SQL_DB: str = Field(default="")
    SQL_USER: str = Field(default="")
    SQL_PASSWORD: str = Field(default="")
    SQL_ENCRYPT: bool = Field(default=False)
    SQL_ODBC_DRIVER: str = Field(default="ODBC Driver 18 for SQL Server")

    # URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=0)
    DB_POOL_TIMEOUT: int = Field(default=30)

    # Seguridad: API keys separadas por coma
    API_KEYS: str = Field(default="")

    # Paginacion de recursos
    DEFAULT_PAGE_SIZE: int = Field(default=50)
    MAX_PAGE_SIZE: int = Field(default=200)

    # Lark / Bitable
    LARK_BASE_URL: str = Field(default="https://open.larksuite.com")
    LARK_APP_ID: str = Field(default="")
    LARK_APP_SECRET: str = Field(default="")
    # Token estático: si se define, no se autentica con app_id/app_secret
    LARK_TOKEN: str = Field(default="")
    LARK_TIMEOUT_SECONDS: float = Field(default=10.0)
    LARK_TOKEN_SAFETY_MARGIN_SECONDS: int = Field(default=5)

    # Sincronización programada productos -> Bitable
    LARK_SYNC_ENABLED: bool = Field(default=False)
    LARK_SYNC_CRON: str = Field(default="0 * * * *")
    LARK_SYNC_APP_ID: str = Field(default="")
    LARK_SYNC_TABLE_ID: str = Field(default="")
    LARK_SYNC_VIEW_ID: str = Field(default="")
    LARK_SYNC_DB_PAGE_SIZE: int = Field(default=100)
    LARK_SYNC_PAGE_SIZE: int = Field(default=20)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye una URL mssql+aioodbc desde los componentes.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        odbc = (
            f"DRIVER={{{self.SQL_ODBC_DRIVER}}};"
            f"SERVER={self.SQL_SERVER},{self.SQL_PORT};"
            f"DATABASE={self.SQL_DB};"
            f"UID={self.SQL_USER};"
            f"PWD={self.SQL_PASSWORD};"
            f"Encrypt={'yes' if self.SQL_ENCRYPT else 'no'};"
            "TrustServerCertificate=yes"
        )
        return f"mssql+aioodbc:///?odbc_connect={quote_plus(odbc)}"

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        """Configuración de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


def get_api_keys(api_keys: str) -> List[str]:
    """
    Parsea la lista de API keys separadas por coma.
    Ignora entradas vacias.
    """
    return [k.strip() for k in (api_keys or "").split(",") if k.strip()]


# Instancia global de configuración
settings = Settings()

"""
Configuración de fixtures para pytest.

Las variables de entorno se fijan ANTES de importar `erp_bridge`: la
configuración y el engine se crean al importar los módulos.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["API_KEYS"] = "test-key, otra-key"
os.environ["LARK_TOKEN"] = ""
os.environ["LARK_APP_ID"] = ""
os.environ["LARK_APP_SECRET"] = ""
os.environ["LARK_SYNC_ENABLED"] = "false"

from typing import Dict

import pytest


API_KEY_HEADERS = {"x-api-key": "test-key"}


@pytest.fixture
def api_key_headers() -> Dict[str, str]:
    return dict(API_KEY_HEADERS)

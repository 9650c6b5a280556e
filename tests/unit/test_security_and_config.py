from __future__ import annotations

from urllib.parse import unquote_plus

from erp_bridge.core.config import Settings, get_api_keys
from erp_bridge.core.security import ApiKeyVerifier


def test_get_api_keys_splits_and_trims() -> None:
    assert get_api_keys(" a , b,,  ,c ") == ["a", "b", "c"]
    assert get_api_keys("") == []


def test_verifier_matches_any_configured_key() -> None:
    verifier = ApiKeyVerifier(["k1", "k2"])
    assert verifier.verify("k2") is True
    assert verifier.verify("k3") is False
    assert verifier.verify("k") is False


def test_verifier_without_keys_rejects_everything() -> None:
    assert ApiKeyVerifier([]).verify("anything") is False


def test_database_url_built_from_components() -> None:
    cfg = Settings(
        DATABASE_URL="",
        SQL_SERVER="db.local",
        SQL_PORT=1433,
        SQL_DB="erp",
        SQL_USER="reader",
        SQL_PASSWORD="p@ss;word",
        SQL_ENCRYPT=True,
    )
    url = cfg.effective_database_url
    assert url.startswith("mssql+aioodbc:///?odbc_connect=")
    odbc = unquote_plus(url.split("odbc_connect=", 1)[1])
    assert "SERVER=db.local,1433;" in odbc
    assert "DATABASE=erp;" in odbc
    assert "Encrypt=yes;" in odbc


def test_explicit_database_url_wins() -> None:
    assert Settings(DATABASE_URL="sqlite+aiosqlite:///x.db").effective_database_url == "sqlite+aiosqlite:///x.db"

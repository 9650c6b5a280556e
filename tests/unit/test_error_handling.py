"""
Tests del manejo de errores: serialización de AppException y el middleware
de último recurso.
"""
from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from erp_bridge.shared.exceptions.base import AppException


def test_app_exception_to_response() -> None:
    exc = AppException("Orden inválido", status_code=400, error_code="invalid_sort", details={"sort": "x"})
    assert exc.to_response() == {
        "error": "invalid_sort",
        "message": "Orden inválido",
        "details": {"sort": "x"},
    }
    assert str(exc) == "Orden inválido"


def test_app_exception_defaults() -> None:
    exc = AppException("falló")
    assert exc.status_code == 500
    assert exc.to_response() == {"error": "internal_error", "message": "falló", "details": {}}


@pytest.mark.asyncio
async def test_app_exception_uses_global_handler() -> None:
    from main import create_application
    app = create_application()

    @app.get("/boom-app")
    async def boom_app():
        raise AppException("Recurso no encontrado", status_code=404, error_code="resource_not_found")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/boom-app")

    assert response.status_code == 404
    assert response.json() == {
        "error": "resource_not_found",
        "message": "Recurso no encontrado",
        "details": {},
    }


@pytest.mark.asyncio
async def test_unhandled_error_becomes_generic_500() -> None:
    from main import create_application
    app = create_application()

    @app.get("/boom")
    async def boom():
        raise RuntimeError("password=secreto")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {
        "error": "internal_error",
        "message": "Error interno del servidor",
        "details": {},
    }
    assert "secreto" not in response.text

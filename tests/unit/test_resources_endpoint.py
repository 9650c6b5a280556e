"""
Tests del contrato HTTP de los endpoints de recursos.

La sesión de base de datos se reemplaza por una falsa vía
dependency_overrides; el resto de la pila (use cases, repositorio, query
builder, manejo de errores) es la real.
"""
from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from erp_bridge.api.v1.dependencies.use_case_deps import get_resource_use_cases
from erp_bridge.application.use_cases.resource_use_cases import ResourceUseCases
from tests.fakes import FakeSession


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def app(session: FakeSession):
    from main import create_application
    application = create_application()
    application.dependency_overrides[get_resource_use_cases] = lambda: ResourceUseCases(session)
    yield application
    application.dependency_overrides.clear()


async def _get(app, url: str, headers=None, params=None):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(url, headers=headers, params=params)


@pytest.mark.asyncio
async def test_missing_api_key_is_401(app) -> None:
    response = await _get(app, "/v1/productos/items")
    assert response.status_code == 401
    assert response.json()["error"] == "missing_api_key"


@pytest.mark.asyncio
async def test_wrong_api_key_is_403(app) -> None:
    response = await _get(app, "/v1/productos/items", headers={"x-api-key": "nope"})
    assert response.status_code == 403
    assert response.json()["error"] == "invalid_api_key"


@pytest.mark.asyncio
async def test_any_configured_key_is_accepted(app, session: FakeSession) -> None:
    session.responses = [[], [{"cnt": 0}]]
    response = await _get(app, "/v1/productos/items", headers={"x-api-key": "otra-key"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_list_items_contract(app, session: FakeSession, api_key_headers) -> None:
    session.responses = [[{"productId": 1, "Descripcion": "foco"}], [{"cnt": 11}]]

    response = await _get(
        app,
        "/v1/productos/items",
        headers=api_key_headers,
        params={
            "page": "2",
            "size": "10",
            "sort": "CodigoProducto",
            "dir": "desc",
            "match": "starts",
            "filter[Descripcion]": "foc",
            "filter[NoPermitido]": "x",
            "filter[CodigoProducto]": "",
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "data": {
            "items": [{"productId": 1, "Descripcion": "foco"}],
            "page": 2,
            "size": 10,
            "total": 11,
        }
    }
    sql, params = session.executed[0]
    assert "WHERE [Descripcion] LIKE :p1 ESCAPE" in sql
    assert "ORDER BY [CodigoProducto] DESC" in sql
    assert "NoPermitido" not in sql
    assert params == {"p1": "foc%", "off": 10, "sz": 10}


@pytest.mark.asyncio
async def test_list_items_caps_size(app, session: FakeSession, api_key_headers) -> None:
    session.responses = [[], [{"cnt": 0}]]
    response = await _get(app, "/v1/productos/items", headers=api_key_headers, params={"size": "100000"})
    assert response.json()["data"]["size"] == 200


@pytest.mark.asyncio
async def test_unknown_resource_is_404(app, api_key_headers) -> None:
    response = await _get(app, "/v1/nope/items", headers=api_key_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "resource_not_found"


@pytest.mark.asyncio
async def test_invalid_sort_is_400(app, session: FakeSession, api_key_headers) -> None:
    response = await _get(app, "/v1/productos/items", headers=api_key_headers, params={"sort": "Descripcion"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "invalid_sort"
    assert session.executed == []


@pytest.mark.asyncio
async def test_query_error_is_500_without_sql(app, session: FakeSession, api_key_headers) -> None:
    session.responses = [OperationalError("SELECT", {}, Exception("Invalid object name"))]
    response = await _get(app, "/v1/productos/items", headers=api_key_headers)
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "query_execution_error"
    assert "SELECT" not in str(body)


@pytest.mark.asyncio
async def test_get_item_found(app, session: FakeSession, api_key_headers) -> None:
    session.responses = [[{"productId": 166401}]]
    response = await _get(app, "/v1/productos/items/166401", headers=api_key_headers)
    assert response.status_code == 200
    assert response.json() == {"data": {"item": {"productId": 166401}}}
    assert session.executed[0][1] == {"id": "166401"}


@pytest.mark.asyncio
async def test_get_item_not_found(app, session: FakeSession, api_key_headers) -> None:
    session.responses = [[]]
    response = await _get(app, "/v1/productos/items/999", headers=api_key_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_get_item_rejects_non_pk_id_column(app, api_key_headers) -> None:
    response = await _get(
        app, "/v1/productos/items/1", headers=api_key_headers, params={"idCol": "Descripcion"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_idCol"


@pytest.mark.asyncio
async def test_orders_by_customer(app, session: FakeSession, api_key_headers) -> None:
    session.responses = [[{"BillCode": "B2"}, {"BillCode": "B1"}]]
    response = await _get(app, "/v1/orders/orders", headers=api_key_headers, params={"customercode": "C1"})
    assert response.status_code == 200
    assert response.json() == {"data": {"orders": [{"BillCode": "B2"}, {"BillCode": "B1"}]}}


@pytest.mark.asyncio
async def test_orders_with_billcode_returns_single_order(app, session: FakeSession, api_key_headers) -> None:
    session.responses = [[{"BillCode": "B1", "customerCode": "C1"}]]
    response = await _get(
        app, "/v1/orders/orders", headers=api_key_headers, params={"customercode": "C1", "billcode": "B1"}
    )
    assert response.status_code == 200
    assert response.json() == {"data": {"order": {"BillCode": "B1", "customerCode": "C1"}}}


@pytest.mark.asyncio
async def test_order_by_billcode_path(app, session: FakeSession, api_key_headers) -> None:
    session.responses = [[]]
    response = await _get(app, "/v1/orders/orders/B1", headers=api_key_headers, params={"customercode": "C1"})
    assert response.status_code == 404
    assert response.json()["error"] == "resource_not_found"


@pytest.mark.asyncio
async def test_orders_without_customer_code_is_400(app, api_key_headers) -> None:
    response = await _get(app, "/v1/orders/orders", headers=api_key_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_customercode"

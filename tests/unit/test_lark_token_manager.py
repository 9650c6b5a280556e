"""
Tests del gestor de tokens de Lark con transporte httpx simulado.
"""
import asyncio
import json

import httpx
import pytest

from erp_bridge.infrastructure.external.lark.token_manager import LarkSession, LarkTokenManager
from erp_bridge.shared.exceptions.lark import (
    AuthenticationFailedException,
    LarkApiError,
    MissingCredentialsException,
)

NOW = 1_700_000_000


class AuthServer:
    """Transporte que responde al endpoint de auth y cuenta las llamadas."""

    def __init__(self, status_code=200, body=None, delay=0.0):
        self.calls = []
        self.status_code = status_code
        self.body = body if body is not None else {
            "code": 0,
            "msg": "ok",
            "app_access_token": "app-token",
            "tenant_access_token": "tenant-token",
            "expire": 7200,
        }
        self.delay = delay

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _manager(server: AuthServer, **kwargs) -> LarkTokenManager:
    options = {
        "base_url": "https://lark.test",
        "app_id": "cli_app",
        "app_secret": "secret",
        "transport": server.transport,
        "clock": lambda: NOW,
    }
    options.update(kwargs)
    return LarkTokenManager(**options)


@pytest.mark.asyncio
async def test_authenticate_posts_credentials_and_caches_session():
    server = AuthServer()
    manager = _manager(server)

    token = await manager.get_token()

    assert token == "app-token"
    assert len(server.calls) == 1
    request = server.calls[0]
    assert request.method == "POST"
    assert str(request.url) == "https://lark.test/open-apis/auth/v3/app_access_token/internal"
    assert json.loads(request.content) == {"app_id": "cli_app", "app_secret": "secret"}
    assert manager.session == LarkSession("app-token", "tenant-token", NOW + 7200)


@pytest.mark.asyncio
async def test_valid_cached_session_prefers_tenant_token_without_network():
    server = AuthServer()
    manager = _manager(server)
    manager.set_session(LarkSession("app", "tenant", NOW + 3600))

    assert await manager.get_token() == "tenant"
    assert server.calls == []


@pytest.mark.asyncio
async def test_cached_session_without_tenant_uses_app_token():
    server = AuthServer()
    manager = _manager(server)
    manager.set_session(LarkSession("app", None, NOW + 3600))

    assert await manager.get_token() == "app"
    assert server.calls == []


@pytest.mark.asyncio
async def test_session_inside_safety_margin_is_renewed():
    server = AuthServer()
    manager = _manager(server, safety_margin_seconds=5)
    manager.set_session(LarkSession("old-app", "old-tenant", NOW + 2))

    assert await manager.get_token() == "app-token"
    assert len(server.calls) == 1


@pytest.mark.asyncio
async def test_static_token_wins_over_everything():
    server = AuthServer()
    manager = _manager(server, static_token="static")
    manager.set_session(LarkSession("app", "tenant", NOW + 3600))

    assert await manager.get_token() == "static"
    assert server.calls == []


@pytest.mark.asyncio
async def test_missing_credentials_fail_before_network():
    server = AuthServer()
    manager = _manager(server, app_id="", app_secret="")

    with pytest.raises(MissingCredentialsException) as exc:
        await manager.get_token()
    assert exc.value.error_code == "missing_lark_app_credentials"
    assert server.calls == []


@pytest.mark.asyncio
async def test_response_without_app_token_fails_auth():
    server = AuthServer(body={"code": 10003, "msg": "invalid param"})
    manager = _manager(server)

    with pytest.raises(AuthenticationFailedException) as exc:
        await manager.get_token()
    assert exc.value.error_code == "failed_lark_auth"
    assert exc.value.details == {"code": 10003, "msg": "invalid param"}


@pytest.mark.asyncio
async def test_http_error_on_auth_is_relayed():
    server = AuthServer(status_code=503, body={"msg": "unavailable"})
    manager = _manager(server)

    with pytest.raises(LarkApiError) as exc:
        await manager.authenticate()
    assert exc.value.status_code == 503
    assert exc.value.body == {"msg": "unavailable"}
    assert manager.session is None


@pytest.mark.asyncio
async def test_concurrent_refresh_authenticates_once():
    server = AuthServer(delay=0.01)
    manager = _manager(server)

    tokens = await asyncio.gather(*(manager.get_token() for _ in range(5)))

    assert len(server.calls) == 1
    assert tokens[0] == "app-token"
    # Las que esperaron el lock reutilizan la sesión nueva
    assert set(tokens[1:]) == {"tenant-token"}


@pytest.mark.asyncio
async def test_clear_forces_new_authentication():
    server = AuthServer()
    manager = _manager(server)
    await manager.get_token()
    manager.clear()
    await manager.get_token()
    assert len(server.calls) == 2


def test_summary_never_exposes_tokens():
    manager = _manager(AuthServer())
    manager.set_session(LarkSession("app", "tenant", NOW + 100))
    summary = manager.summary()
    assert summary == {
        "static_token": False,
        "has_app_token": True,
        "has_tenant_token": True,
        "expire": NOW + 100,
        "valid": True,
    }

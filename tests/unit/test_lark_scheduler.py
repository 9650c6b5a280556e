"""
Tests de la programación del sync con APScheduler.
"""
from __future__ import annotations

import asyncio

import pytest

from erp_bridge.application.use_cases.lark_sync_use_cases import SyncResult
from erp_bridge.core.config import settings
from erp_bridge.infrastructure.scheduler import lark_scheduler


def test_scheduler_disabled_by_default() -> None:
    assert lark_scheduler.create_scheduler() is None


def test_scheduler_enabled_without_targets_is_not_created(monkeypatch) -> None:
    monkeypatch.setattr(settings, "LARK_SYNC_ENABLED", True)
    monkeypatch.setattr(settings, "LARK_SYNC_APP_ID", "")
    monkeypatch.setattr(settings, "LARK_SYNC_TABLE_ID", "tbl1")
    assert lark_scheduler.is_schedule_configured() is False
    assert lark_scheduler.create_scheduler() is None


def test_scheduler_registers_cron_job(monkeypatch) -> None:
    monkeypatch.setattr(settings, "LARK_SYNC_ENABLED", True)
    monkeypatch.setattr(settings, "LARK_SYNC_APP_ID", "app1")
    monkeypatch.setattr(settings, "LARK_SYNC_TABLE_ID", "tbl1")
    monkeypatch.setattr(settings, "LARK_SYNC_CRON", "*/15 * * * *")

    scheduler = lark_scheduler.create_scheduler()

    assert scheduler is not None
    jobs = scheduler.get_jobs()
    assert [job.id for job in jobs] == [lark_scheduler.JOB_ID]
    assert jobs[0].max_instances == 1
    assert "minute='*/15'" in str(jobs[0].trigger)


@pytest.mark.asyncio
async def test_scheduled_job_uses_settings_and_returns_summary(monkeypatch) -> None:
    calls = []

    async def fake_run(**kwargs):
        calls.append(kwargs)
        return SyncResult(created=1)

    monkeypatch.setattr(settings, "LARK_SYNC_APP_ID", "app1")
    monkeypatch.setattr(settings, "LARK_SYNC_TABLE_ID", "tbl1")
    monkeypatch.setattr(settings, "LARK_SYNC_VIEW_ID", "")
    monkeypatch.setattr(lark_scheduler, "run_product_sync", fake_run)

    summary = await lark_scheduler.scheduled_sync_job()

    assert summary == {"created": 1, "updated": 0, "errors": []}
    assert calls == [{
        "app_id": "app1",
        "table_id": "tbl1",
        "view_id": None,
        "db_page_size": settings.LARK_SYNC_DB_PAGE_SIZE,
        "page_size": settings.LARK_SYNC_PAGE_SIZE,
    }]


@pytest.mark.asyncio
async def test_scheduled_job_survives_errors(monkeypatch) -> None:
    async def failing_run(**kwargs):
        raise RuntimeError("lark down")

    monkeypatch.setattr(lark_scheduler, "run_product_sync", failing_run)
    assert await lark_scheduler.scheduled_sync_job() is None


@pytest.mark.asyncio
async def test_concurrent_runs_are_serialized(monkeypatch) -> None:
    state = {"active": 0, "peak": 0, "calls": 0}

    class SlowSync:
        def __init__(self, *, repository, client) -> None:
            pass

        async def sync_products_to_bitable(self, **kwargs) -> SyncResult:
            state["active"] += 1
            state["calls"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1
            return SyncResult(created=1)

    class NullSession:
        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc) -> None:
            return None

    monkeypatch.setattr(lark_scheduler, "_sync_lock", asyncio.Lock())
    monkeypatch.setattr(lark_scheduler, "BitableSyncUseCases", SlowSync)
    monkeypatch.setattr(lark_scheduler, "AsyncSessionLocal", NullSession)
    monkeypatch.setattr(lark_scheduler, "get_bitable_client", lambda: object())

    results = await asyncio.gather(
        *(lark_scheduler.run_product_sync(app_id="a", table_id="t") for _ in range(3))
    )

    assert state["calls"] == 3
    assert state["peak"] == 1
    assert [r.created for r in results] == [1, 1, 1]

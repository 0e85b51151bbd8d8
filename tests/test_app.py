import importlib
import pkgutil

import pytest

import fansite.services
from fansite.db.models import AppLog

SERVICE_MODULES = sorted(m.name for m in pkgutil.iter_modules(fansite.services.__path__, "fansite.services."))


@pytest.mark.parametrize("name", SERVICE_MODULES)
def test_service_modules_import(name):
    module = importlib.import_module(name)
    assert module.__name__ == name


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


async def test_correlation_id_is_echoed_or_generated(client):
    resp = await client.get("/health", headers={"X-Correlation-ID": "abc123"})
    assert resp.headers["X-Correlation-ID"] == "abc123"

    resp = await client.get("/health")
    assert len(resp.headers["X-Correlation-ID"]) == 16


async def test_unknown_ids_return_404_with_detail(client):
    resp = await client.get("/api/v1/characters/12345")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Character with id 12345 not found"}


async def test_logs_are_admin_only(client, add, user, admin, auth_headers):
    await add(
        AppLog(level="ERROR", source="backend", module="fansite.services", message="Cache get error"),
        AppLog(level="INFO", source="backend", module="fansite.main", message="Scheduler started"),
    )

    assert (await client.get("/api/v1/logs")).status_code == 401
    assert (await client.get("/api/v1/logs", headers=auth_headers(user))).status_code == 401

    body = (await client.get("/api/v1/logs", params={"level": "error"}, headers=auth_headers(admin))).json()
    assert body["total"] == 1
    assert body["data"][0]["message"] == "Cache get error"

    stats = (await client.get("/api/v1/logs/stats", headers=auth_headers(admin))).json()
    assert stats["total_count"] == 2
    assert stats["error_count"] == 1

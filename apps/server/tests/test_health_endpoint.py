"""Tests for the /api/health endpoint registration."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from dropsreport import __version__
from dropsreport.routes import create_router


def _endpoint(router, path: str):
    return next(r.endpoint for r in router.routes if getattr(r, "path", None) == path)


def test_health_route_registered() -> None:
    router = create_router(MagicMock())
    routes = {r.path: r.methods for r in router.routes if hasattr(r, "methods")}
    assert "/api/health" in routes
    assert "GET" in routes["/api/health"]


@pytest.mark.asyncio
async def test_health_reports_ok_while_pool_alive() -> None:
    state = MagicMock()
    state.pool.alive = True
    result = await _endpoint(create_router(state), "/api/health")()
    assert result == {"status": "ok", "version": __version__}


@pytest.mark.asyncio
async def test_health_reports_degraded_after_shutdown() -> None:
    state = MagicMock()
    state.pool.alive = False
    result = await _endpoint(create_router(state), "/api/health")()
    assert result["status"] == "degraded"

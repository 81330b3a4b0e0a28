"""Unit tests for warroom/healthcheck.py: no real API calls."""

import asyncio
from unittest.mock import AsyncMock

from warroom.errors import InvocationError
from warroom.healthcheck import affected_roles, run_health_checks

from tests.conftest import MockProvider


async def test_all_providers_pass():
    providers = {"flash": MockProvider("flash"), "pro": MockProvider("pro")}

    results = await run_health_checks(providers)

    assert set(results) == {"flash", "pro"}
    assert all(r.ok and r.error == "" for r in results.values())
    assert all(r.latency_sec >= 0 for r in results.values())


async def test_ping_request_is_plain_text():
    provider = MockProvider("flash")
    await run_health_checks({"flash": provider})
    request = provider.generate.call_args.args[0]
    assert request.json_schema is None
    assert request.use_search is False
    assert request.thinking_budget is None


async def test_one_provider_fails():
    providers = {"flash": MockProvider("flash"), "grok": MockProvider("grok")}
    providers["grok"].generate = AsyncMock(side_effect=InvocationError("grok", "403 Forbidden"))

    results = await run_health_checks(providers)

    assert results["flash"].ok
    assert results["grok"].ok is False
    assert "403" in results["grok"].error


async def test_error_without_message_uses_type_name():
    providers = {"flash": MockProvider("flash")}
    providers["flash"].generate = AsyncMock(side_effect=ConnectionResetError())

    results = await run_health_checks(providers)

    assert results["flash"].error == "ConnectionResetError"


async def test_empty_providers():
    assert await run_health_checks({}) == {}


async def test_timeout_counts_as_failure(monkeypatch):
    providers = {"slow": MockProvider("slow")}

    async def hang(*args, **kwargs):
        await asyncio.sleep(9999)

    providers["slow"].generate = AsyncMock(side_effect=hang)
    monkeypatch.setattr("warroom.healthcheck._TIMEOUT_SEC", 0.05)

    results = await run_health_checks(providers)

    assert results["slow"].ok is False
    assert results["slow"].error == "TimeoutError"


def test_affected_roles_maps_models_to_roles(sample_app_config):
    assert affected_roles(sample_app_config, {"pro"}) == ["tie_breaker"]
    flash_roles = affected_roles(sample_app_config, {"flash"})
    assert "optimist" in flash_roles
    assert "tie_breaker" not in flash_roles
    assert flash_roles[-1] == "clarifier"
    assert affected_roles(sample_app_config, set()) == []

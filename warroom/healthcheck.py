"""Pre-flight check: ping each model a debate role needs and map failures back to roles."""

import asyncio
import logging
import time
from dataclasses import dataclass

from config.config_loader import AppConfig
from warroom.models import ProviderRequest
from warroom.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_REQUEST = ProviderRequest(system_instruction="", prompt="Reply with the word OK only.")
_TIMEOUT_SEC = 15.0


@dataclass
class HealthResult:
    model: str
    ok: bool
    error: str = ""
    latency_sec: float = 0.0


async def _ping(model: str, provider: AIProvider) -> HealthResult:
    started = time.monotonic()
    try:
        await asyncio.wait_for(provider.generate(_PING_REQUEST), timeout=_TIMEOUT_SEC)
    except Exception as exc:
        logger.debug("Ping failed for %s: %r", model, exc)
        return HealthResult(model, False, str(exc) or type(exc).__name__, time.monotonic() - started)
    return HealthResult(model, True, latency_sec=time.monotonic() - started)


async def run_health_checks(providers: dict[str, AIProvider]) -> dict[str, HealthResult]:
    """Ping every provider concurrently. Keyed by model name; never raises."""
    results = await asyncio.gather(*(_ping(m, p) for m, p in providers.items()))
    return {r.model: r for r in results}


def affected_roles(config: AppConfig, failed_models: set[str]) -> list[str]:
    """Roles (plus 'clarifier') that would fail because their model is down."""
    roles = [rc.role.value for rc in config.roles.values() if rc.model in failed_models]
    if config.clarification.model in failed_models:
        roles.append("clarifier")
    return roles

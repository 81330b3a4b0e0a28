"""Integration tests: real API calls, no mocks. Requires .env with GEMINI_API_KEY."""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

load_dotenv()

pytestmark = pytest.mark.integration

if not os.environ.get("GEMINI_API_KEY", "").strip():
    pytestmark = pytest.mark.skip(reason="GEMINI_API_KEY not set")


async def test_full_debate_pipeline(tmp_path: Path):
    """Run a real debate end to end with the bundled settings, verify no crash."""
    from config.config_loader import load_config
    from warroom.cli import _build_all_providers, _missing_models
    from warroom.invoker import PanelInvoker
    from warroom.models import SessionStatus
    from warroom.orchestrator import DebateOrchestrator
    from warroom.output import save_to_file

    config = load_config()
    providers = _build_all_providers(config)
    if _missing_models(config, providers):
        pytest.skip(f"Missing providers: {_missing_models(config, providers)}")

    invoker = PanelInvoker(config, providers)
    orchestrator = DebateOrchestrator(invoker, invoker)

    session = await orchestrator.start("luxury dog perfume subscription", "Silicon Valley, USA")
    assert session.status is SessionStatus.CLARIFYING, session.error
    assert len(session.clarifications.questions) == 3

    session = await orchestrator.submit_clarifications(["B2C DTC", "$40/mo", "Millennial pet owners"])
    assert session.status is SessionStatus.COMPLETED, session.error
    assert 0 <= session.verdict.viability_score <= 10
    assert session.verdict.tie_breaker_ruling

    saved = save_to_file(session, tmp_path / "output")
    content = saved.read_text(encoding="utf-8")
    assert "War Room Debate" in content
    assert "Tie-Breaker Ruling" in content

"""Shared pytest fixtures."""

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, ClarificationConfig, DefaultsConfig, ModelConfig, RoleConfig
from warroom.invoker import AgentInvoker, ClarificationGenerator
from warroom.models import ModelResponse, ProviderRequest, Role, Source, Verdict
from warroom.providers.base import AIProvider

SAMPLE_IDEA = "luxury dog perfume subscription"
SAMPLE_LOCATION = "Silicon Valley, USA"
SAMPLE_ANSWERS = ["B2C DTC", "$40/mo", "Millennial pet owners"]
SAMPLE_QUESTIONS = [
    "Who is the primary buyer?",
    "What is the price point?",
    "Which channel will you sell through?",
]

SAMPLE_VERDICT = Verdict(
    viability_score=6.5,
    summary="Niche but defensible premium pet play.",
    key_risks=("High CAC", "Regulatory scrutiny on pet cosmetics"),
    key_opportunities=("Subscription LTV", "Influencer-friendly product"),
    market_trends=("Pet humanization",),
    social_sentiment="Mixed, trending on TikTok",
    estimated_cac="$55-$80",
    sources=(Source(title="Pet Industry Report", uri="https://example.com/pets"),),
)

SAMPLE_VERDICT_JSON = json.dumps({
    "viabilityScore": 6.5,
    "summary": "Niche but defensible premium pet play.",
    "keyRisks": ["High CAC", "Regulatory scrutiny on pet cosmetics"],
    "keyOpportunities": ["Subscription LTV", "Influencer-friendly product"],
    "marketTrends": ["Pet humanization"],
    "socialSentiment": "Mixed, trending on TikTok",
    "estimatedCAC": "$55-$80",
})

DEFAULT_OUTPUTS: dict = {
    Role.OPTIMIST: "Massive upside in premium pet care.",
    Role.SKEPTIC: "Unit economics collapse on shipping costs.",
    Role.SOCIAL_LISTENER: "Pet perfume is trending on TikTok.",
    Role.AD_ANALYST: "CPC around $2.10, CAC near $60.",
    Role.JUDGE: SAMPLE_VERDICT,
    Role.TIE_BREAKER: "Proceed with a limited DTC pilot.",
}


class FakeInvoker(AgentInvoker, ClarificationGenerator):
    """Scripted invoker and clarifier.

    Each output is either a value, an exception to raise, or an async
    callable (idea, location, context) -> value for per-call control.
    """

    def __init__(self, outputs: dict | None = None, questions=None) -> None:
        self.outputs = {**DEFAULT_OUTPUTS, **(outputs or {})}
        self.questions = list(SAMPLE_QUESTIONS) if questions is None else questions
        self.calls: list[tuple[Role | str, str | None]] = []

    async def invoke(self, role, idea, location, context=None):
        self.calls.append((role, context))
        out = self.outputs[role]
        if callable(out):
            out = await out(idea, location, context)
        if isinstance(out, Exception):
            raise out
        return out

    async def generate(self, idea, location):
        self.calls.append(("clarifier", None))
        out = self.questions
        if callable(out):
            out = await out(idea, location)
        if isinstance(out, Exception):
            raise out
        return out

    def roles_called(self) -> list:
        return [role for role, _ in self.calls]

    def context_for(self, role: Role) -> str | None:
        return next(ctx for r, ctx in self.calls if r == role)


@pytest.fixture
def fake_invoker() -> FakeInvoker:
    return FakeInvoker()


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=ModelResponse(
                provider=provider_name,
                model="mock-model",
                content=response_content,
                latency_sec=0.1,
                token_count=10,
            )
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, request: ProviderRequest) -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return ModelResponse(
            provider=self._name,
            model="mock-model",
            content=self._response_content,
            latency_sec=0.1,
            token_count=10,
        )


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="test",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
        api_key="sk-test",
    )


def _role_config(role: Role, model: str = "flash", **kwargs) -> RoleConfig:
    return RoleConfig(
        role=role,
        model=model,
        system=f"You are the {role.value}.",
        prompt=f"{role.value}: {{idea}} in {{location}}. Context: {{context}}",
        **kwargs,
    )


@pytest.fixture
def sample_app_config(tmp_path: Path) -> AppConfig:
    models = {
        "flash": ModelConfig("flash", "gemini", "gemini-flash", "GEMINI_API_KEY", 60, 4096, api_key="k"),
        "pro": ModelConfig("pro", "gemini", "gemini-pro", "GEMINI_API_KEY", 300, 32768, api_key="k"),
    }
    roles = {
        Role.OPTIMIST: _role_config(Role.OPTIMIST),
        Role.SKEPTIC: _role_config(Role.SKEPTIC),
        Role.SOCIAL_LISTENER: _role_config(Role.SOCIAL_LISTENER, search=True),
        Role.AD_ANALYST: _role_config(Role.AD_ANALYST, search=True),
        Role.JUDGE: _role_config(Role.JUDGE, search=True),
        Role.TIE_BREAKER: _role_config(Role.TIE_BREAKER, model="pro", thinking_budget=16000),
    }
    return AppConfig(
        defaults=DefaultsConfig(output_dir=tmp_path / "output"),
        models=models,
        roles=roles,
        clarification=ClarificationConfig(model="flash", prompt="Ask 3 questions about {idea} in {location}."),
        available_providers={"flash", "pro"},
    )

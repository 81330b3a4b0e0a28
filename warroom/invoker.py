"""Agent invocation: the role -> model call boundary used by the orchestrator."""

import logging
from abc import ABC, abstractmethod

from config.config_loader import AppConfig, RoleConfig
from warroom.errors import InvalidInputError, InvocationError
from warroom.models import ModelResponse, ProviderRequest, Role, Verdict
from warroom.parsing import QUESTIONS_SCHEMA, VERDICT_SCHEMA, normalize_sources, parse_questions, parse_verdict
from warroom.providers.base import AIProvider

logger = logging.getLogger(__name__)


class AgentInvoker(ABC):
    """Produces one role's contribution. Stateless between calls."""

    @abstractmethod
    async def invoke(
        self,
        role: Role,
        idea: str,
        location: str,
        context: str | None = None,
    ) -> str | Verdict:
        """Run a single role.

        Returns:
            A Verdict (without ruling) for Role.JUDGE, text for every other role.

        Raises:
            InvalidInputError: If idea or location is blank.
            InvocationError: On transport failure or empty output.
            MalformedVerdictError: If the judge payload is not a valid Verdict.
        """
        ...


class ClarificationGenerator(ABC):
    """Produces the follow-up questions asked between analysis and refinement."""

    @abstractmethod
    async def generate(self, idea: str, location: str) -> list[str]:
        """Return exactly three ordered questions.

        Raises:
            InvocationError: On transport failure.
            MalformedQuestionsError: If the output is not exactly three questions.
        """
        ...


def _check_inputs(idea: str, location: str) -> None:
    if not idea or not idea.strip():
        raise InvalidInputError("idea must not be empty")
    if not location or not location.strip():
        raise InvalidInputError("location must not be empty")


class PanelInvoker(AgentInvoker, ClarificationGenerator):
    """Config-driven invoker: each role maps to a provider plus prompt template."""

    def __init__(self, config: AppConfig, providers: dict[str, AIProvider]) -> None:
        self._config = config
        self._providers = providers

    def _provider_for(self, model_key: str, caller: str) -> AIProvider:
        provider = self._providers.get(model_key)
        if provider is None:
            raise InvocationError(caller, f"No provider available for model '{model_key}'")
        return provider

    def _build_request(self, role_cfg: RoleConfig, idea: str, location: str, context: str | None) -> ProviderRequest:
        return ProviderRequest(
            system_instruction=role_cfg.system,
            prompt=role_cfg.prompt.format(idea=idea, location=location, context=context or ""),
            json_schema=VERDICT_SCHEMA if role_cfg.role is Role.JUDGE else None,
            use_search=role_cfg.search,
            thinking_budget=role_cfg.thinking_budget,
        )

    async def invoke(
        self,
        role: Role,
        idea: str,
        location: str,
        context: str | None = None,
    ) -> str | Verdict:
        _check_inputs(idea, location)
        role_cfg = self._config.roles[role]
        provider = self._provider_for(role_cfg.model, role.value)
        request = self._build_request(role_cfg, idea, location, context)
        if request.use_search and not provider.supports_search:
            logger.warning("%s wants web search but %s cannot search; answering ungrounded",
                           role.value, provider.name())

        logger.info("Invoking %s via %s", role.value, provider.name())
        response: ModelResponse = await provider.generate(request)

        if role is Role.JUDGE:
            return parse_verdict(response.content, normalize_sources(response.sources))
        return response.content

    async def generate(self, idea: str, location: str) -> list[str]:
        _check_inputs(idea, location)
        clar = self._config.clarification
        provider = self._provider_for(clar.model, "clarifier")
        request = ProviderRequest(
            system_instruction=clar.system,
            prompt=clar.prompt.format(idea=idea, location=location),
            json_schema=QUESTIONS_SCHEMA,
        )

        logger.info("Generating clarifying questions via %s", provider.name())
        response = await provider.generate(request)
        return parse_questions(response.content)

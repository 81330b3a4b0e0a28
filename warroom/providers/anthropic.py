"""Anthropic Claude provider using anthropic SDK with native async."""

import asyncio
import json
import logging
import time

import anthropic as anthropic_sdk

from config.config_loader import ModelConfig
from warroom.errors import InvocationError
from warroom.models import ModelResponse, ProviderRequest
from warroom.providers.base import AIProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider via anthropic SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        if not config.api_key:
            raise InvocationError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = anthropic_sdk.AsyncAnthropic(api_key=config.api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, request: ProviderRequest) -> ModelResponse:
        prompt = request.prompt
        if request.json_schema:
            prompt += (
                "\n\nRespond with only a JSON object matching this schema:\n"
                + json.dumps(request.json_schema)
            )
        kwargs: dict = {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if request.system_instruction:
            kwargs["system"] = request.system_instruction
        if request.thinking_budget is not None:
            kwargs["thinking"] = {"type": "enabled", "budget_tokens": request.thinking_budget}

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(**kwargs),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise InvocationError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise InvocationError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.content:
            raise InvocationError(self._config.name, "Empty response content")

        # thinking blocks are skipped
        text_blocks = [b.text for b in response.content if b.type == "text"]
        if not text_blocks:
            raise InvocationError(self._config.name, "No text blocks in response")

        content = "\n".join(text_blocks)

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.input_tokens + response.usage.output_tokens

        logger.info(
            "Anthropic %s: %.2fs, %s tokens",
            self._config.model,
            latency,
            token_count,
        )

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            content=content,
            latency_sec=latency,
            token_count=token_count,
        )

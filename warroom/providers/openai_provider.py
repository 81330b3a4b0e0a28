"""OpenAI provider using openai SDK with native async.

Also serves OpenAI-compatible APIs (xAI Grok, DeepSeek) through base_url.
"""

import asyncio
import json
import logging
import time

from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from warroom.errors import InvocationError
from warroom.models import ModelResponse, ProviderRequest
from warroom.providers.base import AIProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    """OpenAI (or OpenAI-compatible) provider via openai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        if not config.api_key:
            raise InvocationError(config.name, f"Missing API key: {config.api_key_env}")
        if config.base_url:
            self._client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)
        else:
            self._client = AsyncOpenAI(api_key=config.api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    def _messages(self, request: ProviderRequest) -> list[dict]:
        messages: list[dict] = []
        if request.system_instruction:
            messages.append({"role": "system", "content": request.system_instruction})
        prompt = request.prompt
        if request.json_schema:
            # json_object mode requires the word JSON in the conversation
            prompt += "\n\nRespond with a JSON object matching this schema:\n" + json.dumps(request.json_schema)
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(self, request: ProviderRequest) -> ModelResponse:
        if request.use_search or request.thinking_budget is not None:
            logger.debug("%s: search/thinking options not supported, ignoring", self._config.name)

        kwargs: dict = {
            "model": self._config.model,
            "messages": self._messages(request),
            "max_tokens": self._config.max_tokens,
        }
        if request.json_schema:
            kwargs["response_format"] = {"type": "json_object"}

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(**kwargs),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise InvocationError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise InvocationError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise InvocationError(self._config.name, "Empty response content")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.total_tokens

        logger.info(
            "OpenAI %s: %.2fs, %s tokens",
            self._config.model,
            latency,
            token_count,
        )

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            content=choice.message.content,
            latency_sec=latency,
            token_count=token_count,
        )

"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import time

from google import genai
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from warroom.errors import InvocationError
from warroom.models import ModelResponse, ProviderRequest
from warroom.providers.base import AIProvider

logger = logging.getLogger(__name__)


def _grounding_sources(response) -> list[dict]:
    """Collect {"title", "uri"} pairs from search grounding metadata."""
    candidates = response.candidates or []
    if not candidates or candidates[0].grounding_metadata is None:
        return []
    chunks = candidates[0].grounding_metadata.grounding_chunks or []
    sources: list[dict] = []
    for chunk in chunks:
        if chunk.web is None:
            continue
        sources.append({"title": chunk.web.title or "", "uri": chunk.web.uri or ""})
    return sources


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK.

    The only backend with search grounding; its sources come back in
    ModelResponse.sources.
    """

    supports_search = True

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        if not config.api_key:
            raise InvocationError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=config.api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    def _build_config(self, request: ProviderRequest) -> genai_types.GenerateContentConfig:
        tools = None
        if request.use_search:
            tools = [genai_types.Tool(google_search=genai_types.GoogleSearch())]
        thinking = None
        if request.thinking_budget is not None:
            thinking = genai_types.ThinkingConfig(thinking_budget=request.thinking_budget)
        return genai_types.GenerateContentConfig(
            system_instruction=request.system_instruction or None,
            max_output_tokens=self._config.max_tokens,
            tools=tools,
            response_mime_type="application/json" if request.json_schema else None,
            response_json_schema=request.json_schema,
            thinking_config=thinking,
        )

    async def generate(self, request: ProviderRequest) -> ModelResponse:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._config.model,
                    contents=request.prompt,
                    config=self._build_config(request),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise InvocationError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise InvocationError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.text:
            raise InvocationError(self._config.name, "Empty response text")

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        sources = _grounding_sources(response)

        logger.info(
            "Gemini %s: %.2fs, %s tokens, %d sources",
            self._config.model,
            latency,
            token_count,
            len(sources),
        )

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            content=response.text,
            latency_sec=latency,
            token_count=token_count,
            sources=sources,
        )

"""Generation client: one call to Claude through PydanticAI, raw text back.

Exactly one attempt per call. Retries belong to whoever owns the whole
pipeline run, never to this client.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog
from pydantic_ai.models.anthropic import AnthropicModelSettings

from growthlab.config import Settings
from growthlab.errors import (
    ConfigurationError,
    GenerationFailedError,
    GenerationRequestInvalidError,
)
from growthlab.metrics import generation_duration_seconds, llm_tokens_total

if TYPE_CHECKING:
    from pydantic_ai.models import Model
    from pydantic_ai.usage import RunUsage

logger = structlog.get_logger()


class LLMClient:
    """Wrapper around the Anthropic API, constructed once at startup and injected."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._model: Model | None = None

    @property
    def model(self) -> Model:
        if self._model is None:
            from pydantic_ai.models.anthropic import AnthropicModel
            from pydantic_ai.providers.anthropic import AnthropicProvider

            provider = AnthropicProvider(api_key=self.settings.anthropic_api_key)
            self._model = AnthropicModel(self.settings.llm_model, provider=provider)
        return self._model

    @property
    def is_available(self) -> bool:
        return bool(self.settings.anthropic_api_key)

    def _build_model_settings(
        self,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> AnthropicModelSettings:
        """Build model_settings with Anthropic prompt caching enabled."""
        temp = temperature if temperature is not None else self.settings.llm_temperature
        tokens = max_tokens if max_tokens is not None else self.settings.llm_max_tokens
        return AnthropicModelSettings(
            temperature=temp,
            max_tokens=tokens,
            anthropic_cache_instructions=True,
        )

    def _log_and_record_usage(self, usage: RunUsage, elapsed_s: float) -> None:
        logger.info(
            "LLM response",
            model=self.settings.llm_model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            elapsed_s=round(elapsed_s, 2),
        )
        model_label = self.settings.llm_model
        llm_tokens_total.labels(model=model_label, token_type="request").inc(
            usage.input_tokens or 0
        )
        llm_tokens_total.labels(model=model_label, token_type="response").inc(
            usage.output_tokens or 0
        )
        generation_duration_seconds.observe(elapsed_s)

    async def generate_json_text(self, system: str, prompt: str) -> str:
        """Send the system instruction and user turn; return the model's raw text.

        JSON output is requested through the system instruction's schema
        contract. The text is returned untouched for the recovery layer.

        Raises:
            ConfigurationError: no API key, raised before any request.
            GenerationRequestInvalidError: the provider rejected the request (400).
            GenerationFailedError: any other upstream failure, timeout or empty text.
        """
        if not self.is_available:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")

        from pydantic_ai import Agent
        from pydantic_ai.exceptions import ModelHTTPError

        agent: Agent[None, str] = Agent(self.model, output_type=str, system_prompt=system)

        logger.debug(
            "LLM request",
            model=self.settings.llm_model,
            system_chars=len(system),
            prompt_chars=len(prompt),
        )

        start = time.monotonic()
        try:
            async with asyncio.timeout(self.settings.llm_timeout_seconds):
                result = await agent.run(prompt, model_settings=self._build_model_settings())
        except ModelHTTPError as exc:
            if exc.status_code == 400:
                raise GenerationRequestInvalidError(
                    f"Generation request invalid: {exc}"
                ) from exc
            raise GenerationFailedError(f"Experiment generation failed: {exc}") from exc
        except TimeoutError as exc:
            raise GenerationFailedError(
                f"Experiment generation timed out after {self.settings.llm_timeout_seconds:g}s"
            ) from exc
        except Exception as exc:
            raise GenerationFailedError(f"Experiment generation failed: {exc}") from exc

        try:
            usage = result.usage() if callable(result.usage) else result.usage
            self._log_and_record_usage(usage, time.monotonic() - start)
        except Exception as exc:
            logger.warning("Usage recording failed", error=str(exc))

        output = result.output
        if not output or not output.strip():
            raise GenerationFailedError("Experiment generation returned an empty response")
        return output

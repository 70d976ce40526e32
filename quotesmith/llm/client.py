"""
quotesmith.llm.client - Gemini generation client using litellm.

Sends one structured-output request per call and retries transient
failures in a bounded loop with a fixed delay.
"""

from __future__ import annotations

import asyncio
import base64
from typing import Any

from quotesmith.exceptions import (
    ConfigError,
    FatalError,
    GenerationError,
    TransientError,
)
from quotesmith.llm.parsing import RESPONSE_SCHEMA, parse_generation_response
from quotesmith.llm.templates import PromptTemplateManager
from quotesmith.logging import logger
from quotesmith.models import GenerationRequest, GenerationResult

TRANSIENT_SIGNATURES = (
    "rpc failed",
    "503",
    "xhr error",
    "code: 6",
    "connection",
    "timed out",
    "timeout",
    "unavailable",
)
TRANSIENT_STATUS_CODES = {408}


def classify_error(error: Exception) -> GenerationError:
    """Map a raw backend exception onto TransientError or FatalError.

    5xx responses and network/RPC transport failures are transient.
    Everything else (auth, bad request, malformed output) is fatal.
    """
    if isinstance(error, GenerationError):
        return error

    message = str(error) or error.__class__.__name__
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        if status >= 500 or status in TRANSIENT_STATUS_CODES:
            return TransientError(message)
        return FatalError(message)

    lowered = message.lower()
    if any(signature in lowered for signature in TRANSIENT_SIGNATURES):
        return TransientError(message)
    return FatalError(message)


def encode_media(data: bytes, mime_type: str) -> str:
    """Inline media as a base64 data URL."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class GenerationClient:
    """Retrying transport for quote generation requests."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        timeout: int = 300,
        temperature: float = 1.0,
        max_retries: int = 2,
        retry_delay: float = 2.0,
        template_manager: PromptTemplateManager | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ConfigError("API key not found in environment")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.template_manager = template_manager or PromptTemplateManager()
        self._token_usage = {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

    def _get_model_string(self) -> str:
        if self.model.startswith("gemini/"):
            return self.model
        return f"gemini/{self.model}"

    def build_messages(
        self,
        request: GenerationRequest,
        media_data: bytes | None = None,
    ) -> list[dict[str, Any]]:
        """Build the chat messages: system prompt, then inline media and instruction."""
        parts: list[dict[str, Any]] = []
        if request.media is not None and media_data is not None:
            parts.append(
                {
                    "type": "file",
                    "file": {"file_data": encode_media(media_data, request.media.mime_type)},
                }
            )
        parts.append({"type": "text", "text": self.template_manager.compose_instruction(request)})

        return [
            {"role": "system", "content": self.template_manager.system_prompt()},
            {"role": "user", "content": parts},
        ]

    async def _complete(self, messages: list[dict[str, Any]]) -> Any:
        import litellm

        litellm.telemetry = False
        return await litellm.acompletion(
            model=self._get_model_string(),
            messages=messages,
            api_key=self.api_key,
            temperature=self.temperature,
            timeout=self.timeout,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "quote_set", "schema": RESPONSE_SCHEMA},
            },
        )

    def _extract_content(self, response: Any) -> str | None:
        usage = getattr(response, "usage", None)
        if usage:
            self._token_usage["prompt_tokens"] += getattr(usage, "prompt_tokens", 0) or 0
            self._token_usage["completion_tokens"] += getattr(usage, "completion_tokens", 0) or 0
            self._token_usage["total_tokens"] += getattr(usage, "total_tokens", 0) or 0

        choices = getattr(response, "choices", None) or []
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None)

    async def send(
        self,
        request: GenerationRequest,
        media_data: bytes | None = None,
    ) -> GenerationResult:
        """Send a request and parse the structured result.

        Transient failures are retried up to max_retries times, waiting
        retry_delay seconds before each retry. Fatal failures and parse
        errors propagate on the first occurrence.

        Raises:
            TransientError: If every attempt failed transiently
            FatalError: On a non-retryable failure or bad response
        """
        messages = self.build_messages(request, media_data)

        for attempt in range(self.max_retries + 1):
            try:
                response = await self._complete(messages)
            except Exception as e:
                error = classify_error(e)
                if isinstance(error, TransientError) and attempt < self.max_retries:
                    logger.warning(
                        "Retrying request... attempts left: %d (%s)",
                        self.max_retries - attempt,
                        error,
                    )
                    await asyncio.sleep(self.retry_delay)
                    continue
                if error is e:
                    raise
                raise error from e

            return parse_generation_response(self._extract_content(response))

        raise TransientError("Generation request failed")

    def get_token_usage(self) -> dict[str, int]:
        """Get cumulative token usage."""
        return self._token_usage.copy()

    def reset_token_usage(self) -> None:
        self._token_usage = {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


def create_client_from_config(config: Any, api_key: str | None = None) -> GenerationClient:
    """Create a GenerationClient from QuotesmithConfig.

    The API key is read from the environment unless given explicitly.
    """
    from quotesmith.config import resolve_api_key

    return GenerationClient(
        api_key=api_key if api_key is not None else resolve_api_key(),
        model=config.model,
        timeout=config.timeout,
        temperature=config.temperature,
        max_retries=config.max_retries,
        retry_delay=config.retry_delay,
    )

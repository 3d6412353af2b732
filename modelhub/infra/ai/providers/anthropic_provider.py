"""Anthropic Claude provider adapter.

Uses the ``anthropic`` SDK (``AsyncAnthropic``) with ``max_retries=0``.
MiniMax exposes an Anthropic-compatible endpoint and reuses this adapter
with its own id and base URL.

Features:
- System messages are lifted into the ``system`` parameter
- Extended thinking blocks are surfaced as ``reasoning``
- Streaming via raw message stream events
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING, Any

import httpx

from modelhub.infra.ai.providers.base import (
    AIProvider,
    LanguageModel,
    LanguageModelCallParams,
    LanguageModelResult,
    SettingsInput,
    StreamPart,
    Usage,
    coerce_settings,
)
from modelhub.infra.ai.providers.http import SDKClientHolder, sdk_timeout

if TYPE_CHECKING:
    from anthropic import AsyncAnthropic

logger = logging.getLogger(__name__)

ANTHROPIC_BASE_URL = "https://api.anthropic.com"
MINIMAX_BASE_URL = "https://api.minimax.io/anthropic"

# The Messages API requires max_tokens on every request.
DEFAULT_MAX_TOKENS = 4096


def _map_usage(usage: Any) -> Usage | None:
    if usage is None:
        return None
    input_tokens = getattr(usage, "input_tokens", None)
    output_tokens = getattr(usage, "output_tokens", None)
    total = None
    if input_tokens is not None and output_tokens is not None:
        total = input_tokens + output_tokens
    return Usage(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=total,
        cached_input_tokens=getattr(usage, "cache_read_input_tokens", None),
    )


class AnthropicLanguageModel(LanguageModel):
    """Messages API model."""

    def __init__(
        self,
        model_id: str,
        provider: str,
        client: Callable[[], AsyncAnthropic],
    ) -> None:
        super().__init__(model_id, provider)
        self._client = client

    def _request_args(self, params: LanguageModelCallParams) -> dict[str, Any]:
        system_parts = [m.content for m in params.messages if m.role == "system"]
        args: dict[str, Any] = {
            "model": self.model_id,
            "max_tokens": params.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": [
                {"role": m.role, "content": m.content}
                for m in params.messages
                if m.role != "system"
            ],
        }
        if system_parts:
            args["system"] = "\n\n".join(system_parts)
        if params.temperature is not None:
            args["temperature"] = params.temperature
        if params.top_p is not None:
            args["top_p"] = params.top_p
        if params.stop:
            args["stop_sequences"] = params.stop
        if params.provider_options:
            args["extra_body"] = params.provider_options
        return args

    async def do_generate(self, params: LanguageModelCallParams) -> LanguageModelResult:
        logger.debug(
            f"{self.provider} messages request",
            extra={"provider": self.provider, "model": self.model_id},
        )
        response = await self._client().messages.create(**self._request_args(params))

        text_parts: list[str] = []
        thinking_parts: list[str] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "thinking":
                thinking_parts.append(block.thinking)

        return LanguageModelResult(
            text="".join(text_parts),
            reasoning="".join(thinking_parts) or None,
            finish_reason=response.stop_reason,
            usage=_map_usage(response.usage),
            model=response.model,
            response_id=response.id,
        )

    async def do_stream(self, params: LanguageModelCallParams) -> AsyncIterator[StreamPart]:
        args = self._request_args(params)
        args["stream"] = True
        stream = await self._client().messages.create(**args)

        input_tokens: int | None = None
        output_tokens: int | None = None
        finish_reason: str | None = None
        async with stream:
            async for event in stream:
                if event.type == "message_start":
                    input_tokens = event.message.usage.input_tokens
                elif event.type == "content_block_delta":
                    if event.delta.type == "text_delta":
                        yield StreamPart(type="text-delta", text=event.delta.text)
                    elif event.delta.type == "thinking_delta":
                        yield StreamPart(type="reasoning-delta", text=event.delta.thinking)
                elif event.type == "message_delta":
                    finish_reason = event.delta.stop_reason
                    output_tokens = event.usage.output_tokens

        total = None
        if input_tokens is not None and output_tokens is not None:
            total = input_tokens + output_tokens
        yield StreamPart(
            type="finish",
            finish_reason=finish_reason,
            usage=Usage(input_tokens=input_tokens, output_tokens=output_tokens, total_tokens=total),
        )


class AnthropicProvider(AIProvider):
    """Anthropic adapter (language only).

    Usage:
        provider = AnthropicProvider({"api_key": "sk-ant-..."})
        model = provider.language_model("claude-sonnet-4-5")
    """

    def __init__(
        self,
        settings: SettingsInput = None,
        *,
        provider_id: str = "anthropic",
        name: str = "Anthropic",
        default_base_url: str = ANTHROPIC_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = coerce_settings(settings)
        self.id = provider_id
        self.name = name
        self.base_url = self.settings.base_url or default_base_url
        self.http_client = http_client
        self._client = SDKClientHolder(self._build_client)

    def _build_client(self) -> AsyncAnthropic:
        from anthropic import AsyncAnthropic

        kwargs: dict[str, Any] = {
            "api_key": self.settings.api_key,
            "base_url": self.base_url,
            "default_headers": self.settings.headers or None,
            "max_retries": 0,
            "timeout": sdk_timeout(self.settings.timeout),
        }
        if self.http_client is not None:
            kwargs["http_client"] = self.http_client
        return AsyncAnthropic(**kwargs)

    def language_model(self, model_id: str) -> LanguageModel:
        return AnthropicLanguageModel(model_id, self.id, self._client)


def create_anthropic(
    settings: SettingsInput = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> AnthropicProvider:
    return AnthropicProvider(settings, http_client=http_client)


def create_minimax(
    settings: SettingsInput = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> AnthropicProvider:
    """MiniMax through its Anthropic-compatible endpoint."""
    return AnthropicProvider(
        settings,
        provider_id="minimax",
        name="MiniMax",
        default_base_url=MINIMAX_BASE_URL,
        http_client=http_client,
    )

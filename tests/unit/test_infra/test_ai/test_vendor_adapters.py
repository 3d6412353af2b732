"""Unit tests for the vendor adapters.

Tests cover:
- Capability sets and default endpoints per vendor
- Lazy validation: binding never fails, calls report missing configuration
- Wire formats of the non-OpenAI vendors (Anthropic, Gemini, Cohere, Ollama,
  DashScope rerank, Azure OpenAI)
"""

from __future__ import annotations

import json
from contextlib import aclosing

import httpx
import pytest

from modelhub.core.exceptions import APIError, ConfigurationError
from modelhub.infra.ai.capabilities.registry import ProviderRegistry
from modelhub.infra.ai.capabilities.types import Capability
from modelhub.infra.ai.generation import (
    embed,
    embed_many,
    generate_text,
    rerank,
    stream_text,
)
from modelhub.infra.ai.providers.anthropic_provider import create_anthropic, create_minimax
from modelhub.infra.ai.providers.azure_provider import create_azure
from modelhub.infra.ai.providers.cohere_provider import create_cohere
from modelhub.infra.ai.providers.google_provider import create_google
from modelhub.infra.ai.providers.ollama_provider import create_ollama
from modelhub.infra.ai.providers.openai_compatible import COMPATIBLE_VENDORS
from modelhub.infra.ai.providers.tongyi_provider import DASHSCOPE_RERANK_URL, create_tongyi


@pytest.fixture
def registry():
    return ProviderRegistry()


def caps(*names: str) -> list[Capability]:
    return [c for c in Capability if c.value in names]


# ──────────────────────────────────────────────────────────────
# Test Capabilities / Endpoints
# ──────────────────────────────────────────────────────────────


class TestVendorCapabilities:
    """Tests for the capability set each built-in vendor exposes."""

    @pytest.mark.parametrize(
        ("provider_id", "expected"),
        [
            ("openai", list(Capability)),
            ("custom", list(Capability)),
            ("anthropic", caps("language")),
            ("minimax", caps("language")),
            ("deepseek", caps("language")),
            ("x", caps("language")),
            ("google", caps("language", "embedding")),
            ("ollama", caps("language", "embedding")),
            ("azure", caps("language", "embedding")),
            ("openrouter", caps("language", "embedding")),
            ("cohere", caps("language", "embedding", "rerank")),
            ("tongyi", caps("language", "embedding", "rerank")),
            ("zhipuai", caps("language", "embedding", "rerank")),
            ("siliconflow", caps("language", "embedding", "speech", "image", "rerank")),
        ],
    )
    def test_capabilities(self, registry, provider_id, expected):
        adapter = registry.get(provider_id)

        assert adapter.capabilities.supported == expected

    def test_unsupported_accessor_is_none(self, registry):
        adapter = registry.get("deepseek")

        assert adapter.rerank_model is None
        assert adapter.image_model is None
        assert callable(adapter.language_model)

    def test_language_model_always_present(self, registry):
        for entry in registry.list():
            adapter = registry.get(entry["id"])
            assert adapter.language_model("m").model_id == "m"

    def test_call_is_language_model(self, registry):
        model = registry.get("deepseek")("deepseek-chat")

        assert model.model_id == "deepseek-chat"
        assert model.provider == "deepseek"


class TestDefaultEndpoints:
    """Tests for base URL resolution."""

    @pytest.mark.parametrize("vendor_id", sorted(COMPATIBLE_VENDORS))
    def test_compatible_vendor_default_url(self, registry, vendor_id):
        adapter = registry.get(vendor_id)

        assert adapter.config.base_url == COMPATIBLE_VENDORS[vendor_id].base_url

    def test_known_public_endpoints(self, registry):
        assert registry.get("openai").config.base_url == "https://api.openai.com/v1"
        assert registry.get("x").config.base_url == "https://api.x.ai/v1"
        assert registry.get("openrouter").config.base_url == "https://openrouter.ai/api/v1"
        assert registry.get("ollama").config.base_url == "http://localhost:11434/api"
        assert registry.get("anthropic").base_url == "https://api.anthropic.com"
        assert registry.get("minimax").base_url == "https://api.minimax.io/anthropic"

    def test_base_url_override(self, registry):
        adapter = registry.get("deepseek", {"base_url": "https://proxy.local/v1"})

        assert adapter.config.base_url == "https://proxy.local/v1"


class TestLazyValidation:
    """Binding never fails; configuration problems surface on the first call."""

    def test_binding_without_key_succeeds(self, registry):
        for entry in registry.list():
            adapter = registry.get(entry["id"])
            for capability in adapter.capabilities.supported:
                getattr(adapter, capability.accessor)("some-model")

    @pytest.mark.asyncio
    async def test_azure_without_endpoint_fails_at_call(self):
        model = create_azure({"api_key": "k"}).language_model("deployment")

        with pytest.raises(ConfigurationError) as exc_info:
            await generate_text(model=model, prompt="hi")

        assert exc_info.value.provider == "azure"


# ──────────────────────────────────────────────────────────────
# Test Anthropic
# ──────────────────────────────────────────────────────────────


def anthropic_message(content: list[dict]) -> dict:
    return {
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "model": "claude-sonnet-4-5",
        "content": content,
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 10, "output_tokens": 4},
    }


def anthropic_sse(*events: dict) -> bytes:
    return "".join(
        f"event: {event['type']}\ndata: {json.dumps(event)}\n\n" for event in events
    ).encode()


class TestAnthropic:
    """Tests for the Messages API adapter."""

    @pytest.mark.asyncio
    async def test_generate_lifts_system_and_reads_thinking(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                anthropic_message(
                    [
                        {"type": "thinking", "thinking": "let me see", "signature": "sig"},
                        {"type": "text", "text": "Paris"},
                    ],
                ),
            ),
        )
        provider = create_anthropic({"api_key": "sk-ant"}, http_client=client)

        result = await generate_text(
            model=provider.language_model("claude-sonnet-4-5"),
            system="be brief",
            prompt="capital of France?",
            stop=["\n\n"],
        )

        assert result.text == "Paris"
        assert result.reasoning == "let me see"
        assert result.finish_reason == "end_turn"
        assert result.usage.total_tokens == 14
        request = transport.last_request
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "sk-ant"
        body = transport.last_json()
        assert body["system"] == "be brief"
        assert body["messages"] == [{"role": "user", "content": "capital of France?"}]
        assert body["max_tokens"] == 4096
        assert body["stop_sequences"] == ["\n\n"]

    @pytest.mark.asyncio
    async def test_stream(self, mock_http):
        body = anthropic_sse(
            {
                "type": "message_start",
                "message": {**anthropic_message([]), "stop_reason": None},
            },
            {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Pa"}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "ris"}},
            {"type": "content_block_stop", "index": 0},
            {
                "type": "message_delta",
                "delta": {"stop_reason": "end_turn", "stop_sequence": None},
                "usage": {"output_tokens": 2},
            },
            {"type": "message_stop"},
        )
        client, _ = mock_http(
            lambda request: httpx.Response(
                200, content=body, headers={"content-type": "text/event-stream"},
            ),
        )
        provider = create_anthropic({"api_key": "sk-ant"}, http_client=client)

        parts = [p async for p in stream_text(model=provider.language_model("c"), prompt="hi")]

        assert "".join(p.text for p in parts if p.type == "text-delta") == "Paris"
        assert parts[-1].finish_reason == "end_turn"
        assert parts[-1].usage.input_tokens == 10
        assert parts[-1].usage.output_tokens == 2

    @pytest.mark.asyncio
    async def test_minimax_uses_its_endpoint(self, mock_http, json_response):
        client, transport = mock_http(json_response(anthropic_message([{"type": "text", "text": "ok"}])))
        provider = create_minimax({"api_key": "mm"}, http_client=client)

        await generate_text(model=provider.language_model("MiniMax-M2"), prompt="hi")

        assert str(transport.last_request.url) == "https://api.minimax.io/anthropic/v1/messages"
        assert provider.id == "minimax"

    @pytest.mark.parametrize(
        ("timeout", "expected"),
        [(None, httpx.Timeout(None)), (30.0, httpx.Timeout(30.0))],
    )
    def test_sdk_client_uses_configured_timeout(self, timeout, expected):
        provider = create_anthropic({"api_key": "sk-ant", "timeout": timeout})

        assert provider._client().timeout == expected

    @pytest.mark.asyncio
    async def test_thinking_is_sent(self, mock_http, json_response):
        client, transport = mock_http(json_response(anthropic_message([{"type": "text", "text": "ok"}])))
        provider = create_anthropic({"api_key": "sk-ant"}, http_client=client)

        await generate_text(model=provider.language_model("c"), prompt="hi", thinking=True)

        assert transport.last_json()["thinking"] == {"type": "enabled", "budget_tokens": 1024}


# ──────────────────────────────────────────────────────────────
# Test Google Gemini
# ──────────────────────────────────────────────────────────────


class TestGoogle:
    """Tests for the Generative Language REST adapter."""

    @pytest.mark.asyncio
    async def test_generate_content(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                {
                    "candidates": [
                        {
                            "content": {
                                "role": "model",
                                "parts": [{"text": "thinking...", "thought": True}, {"text": "Hi!"}],
                            },
                            "finishReason": "STOP",
                        },
                    ],
                    "usageMetadata": {
                        "promptTokenCount": 4,
                        "candidatesTokenCount": 2,
                        "totalTokenCount": 6,
                    },
                    "modelVersion": "gemini-2.0-flash",
                },
            ),
        )
        provider = create_google({"api_key": "g-key"}, http_client=client)

        result = await generate_text(
            model=provider.language_model("gemini-2.0-flash"),
            system="sys",
            messages=[{"role": "assistant", "content": "earlier"}],
            prompt="hello",
            max_tokens=50,
        )

        assert result.text == "Hi!"
        assert result.reasoning == "thinking..."
        assert result.finish_reason == "STOP"
        assert result.usage.total_tokens == 6
        request = transport.last_request
        assert str(request.url) == (
            "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
        )
        assert request.headers["x-goog-api-key"] == "g-key"
        assert "authorization" not in request.headers
        body = transport.last_json()
        assert body["systemInstruction"] == {"parts": [{"text": "sys"}]}
        assert body["contents"] == [
            {"role": "model", "parts": [{"text": "earlier"}]},
            {"role": "user", "parts": [{"text": "hello"}]},
        ]
        assert body["generationConfig"] == {"maxOutputTokens": 50}

    @pytest.mark.asyncio
    async def test_stream_generate_content(self, mock_http):
        events = [
            {"candidates": [{"content": {"parts": [{"text": "He"}]}}]},
            {
                "candidates": [{"content": {"parts": [{"text": "llo"}]}, "finishReason": "STOP"}],
                "usageMetadata": {"totalTokenCount": 9},
            },
        ]
        body = "".join(f"data: {json.dumps(e)}\n\n" for e in events).encode()
        client, transport = mock_http(lambda request: httpx.Response(200, content=body))
        provider = create_google({"api_key": "g"}, http_client=client)

        parts = [p async for p in stream_text(model=provider.language_model("gemini-2.0-flash"), prompt="hi")]

        assert [p.text for p in parts if p.type == "text-delta"] == ["He", "llo"]
        assert parts[-1].finish_reason == "STOP"
        assert parts[-1].usage.total_tokens == 9
        assert transport.last_request.url.path.endswith("models/gemini-2.0-flash:streamGenerateContent")
        assert transport.last_request.url.params["alt"] == "sse"

    @pytest.mark.asyncio
    async def test_thinking_merges_into_generation_config(self, mock_http, json_response):
        client, transport = mock_http(
            json_response({"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}),
        )
        provider = create_google({"api_key": "g"}, http_client=client)

        await generate_text(
            model=provider.language_model("gemini-2.5-flash"),
            prompt="hi",
            max_tokens=50,
            thinking=False,
            provider_options={"safetySettings": []},
        )

        body = transport.last_json()
        assert body["generationConfig"] == {
            "maxOutputTokens": 50,
            "thinkingConfig": {"thinkingBudget": 0},
        }
        assert body["safetySettings"] == []

    @pytest.mark.asyncio
    async def test_batch_embed(self, mock_http, json_response):
        client, transport = mock_http(json_response({"embeddings": [{"values": [0.1]}, {"values": [0.2]}]}))
        provider = create_google({"api_key": "g"}, http_client=client)

        result = await embed_many(model=provider.embedding_model("text-embedding-004"), values=["a", "b"])

        assert result.embeddings == [[0.1], [0.2]]
        assert transport.last_request.url.path.endswith("models/text-embedding-004:batchEmbedContents")
        assert transport.last_json()["requests"][0] == {
            "model": "models/text-embedding-004",
            "content": {"parts": [{"text": "a"}]},
        }


# ──────────────────────────────────────────────────────────────
# Test Cohere
# ──────────────────────────────────────────────────────────────


class TestCohere:
    """Tests for the Cohere v2 adapter."""

    @pytest.mark.asyncio
    async def test_chat(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                {
                    "id": "c-1",
                    "finish_reason": "COMPLETE",
                    "message": {"role": "assistant", "content": [{"type": "text", "text": "hey"}]},
                    "usage": {"tokens": {"input_tokens": 3, "output_tokens": 1}},
                },
            ),
        )
        provider = create_cohere({"api_key": "co"}, http_client=client)

        result = await generate_text(model=provider.language_model("command-r"), prompt="hi", top_p=0.9)

        assert result.text == "hey"
        assert result.finish_reason == "COMPLETE"
        assert result.usage.total_tokens == 4
        assert str(transport.last_request.url) == "https://api.cohere.com/v2/chat"
        assert transport.last_request.headers["authorization"] == "Bearer co"
        assert transport.last_json()["p"] == 0.9

    @pytest.mark.asyncio
    async def test_chat_stream(self, mock_http):
        events = [
            {"type": "message-start", "id": "c-1"},
            {"type": "content-delta", "delta": {"message": {"content": {"text": "he"}}}},
            {"type": "content-delta", "delta": {"message": {"content": {"text": "y"}}}},
            {
                "type": "message-end",
                "delta": {
                    "finish_reason": "COMPLETE",
                    "usage": {"tokens": {"input_tokens": 1, "output_tokens": 2}},
                },
            },
        ]
        body = "".join(f"event: {e['type']}\ndata: {json.dumps(e)}\n\n" for e in events).encode()
        client, _ = mock_http(lambda request: httpx.Response(200, content=body))
        provider = create_cohere({"api_key": "co"}, http_client=client)

        parts = [p async for p in stream_text(model=provider.language_model("command-r"), prompt="hi")]

        assert [p.text for p in parts if p.type == "text-delta"] == ["he", "y"]
        assert parts[-1].finish_reason == "COMPLETE"
        assert parts[-1].usage.total_tokens == 3

    @pytest.mark.asyncio
    async def test_embed(self, mock_http, json_response):
        client, transport = mock_http(
            json_response({"embeddings": {"float": [[0.5, 0.5]]}, "meta": {"billed_units": {"input_tokens": 2}}}),
        )
        provider = create_cohere({"api_key": "co"}, http_client=client)

        vector = await embed(model=provider.embedding_model("embed-v4.0"), value="a")

        assert vector == [0.5, 0.5]
        assert transport.last_json()["input_type"] == "search_document"
        assert transport.last_json()["embedding_types"] == ["float"]

    @pytest.mark.asyncio
    async def test_rerank(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                {
                    "results": [{"index": 1, "relevance_score": 0.8}],
                    "meta": {"billed_units": {"search_units": 1}},
                },
            ),
        )
        provider = create_cohere({"api_key": "co"}, http_client=client)

        result = await rerank(
            model=provider.rerank_model("rerank-v3.5"), query="q", documents=["a", "b"], top_n=1,
        )

        assert result.results[0].index == 1
        assert result.results[0].document is None
        assert result.usage.total_tokens == 1
        assert transport.last_json() == {
            "model": "rerank-v3.5",
            "query": "q",
            "documents": ["a", "b"],
            "top_n": 1,
        }


# ──────────────────────────────────────────────────────────────
# Test Ollama
# ──────────────────────────────────────────────────────────────


class TestOllama:
    """Tests for the native Ollama adapter."""

    @pytest.mark.asyncio
    async def test_chat_maps_options(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                {
                    "model": "llama3.1",
                    "message": {"role": "assistant", "content": "hi"},
                    "done": True,
                    "done_reason": "stop",
                    "prompt_eval_count": 5,
                    "eval_count": 1,
                },
            ),
        )
        provider = create_ollama(None, http_client=client)

        result = await generate_text(
            model=provider.language_model("llama3.1"), prompt="hi", max_tokens=8, temperature=0,
        )

        assert result.text == "hi"
        assert result.usage.total_tokens == 6
        assert str(transport.last_request.url) == "http://localhost:11434/api/chat"
        assert "authorization" not in transport.last_request.headers
        body = transport.last_json()
        assert body["stream"] is False
        assert body["options"] == {"temperature": 0, "num_predict": 8}

    @pytest.mark.asyncio
    async def test_chat_stream_ndjson(self, mock_http):
        lines = [
            {"message": {"role": "assistant", "content": "he"}, "done": False},
            {"message": {"role": "assistant", "content": "y"}, "done": False},
            {"message": {"role": "assistant", "content": ""}, "done": True, "done_reason": "stop", "eval_count": 2},
        ]
        body = "\n".join(json.dumps(line) for line in lines).encode()
        client, _ = mock_http(lambda request: httpx.Response(200, content=body))
        provider = create_ollama(None, http_client=client)

        parts = [p async for p in stream_text(model=provider.language_model("llama3.1"), prompt="hi")]

        assert [p.text for p in parts if p.type == "text-delta"] == ["he", "y"]
        assert parts[-1].finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_early_exit_closes_per_request_client(self, monkeypatch):
        lines = [
            {"message": {"role": "assistant", "content": "he"}, "done": False},
            {"message": {"role": "assistant", "content": "y"}, "done": True, "done_reason": "stop"},
        ]
        body = "\n".join(json.dumps(line) for line in lines).encode()
        clients: list[httpx.AsyncClient] = []

        def create_client(timeout):
            client = httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(200, content=body)),
            )
            clients.append(client)
            return client

        monkeypatch.setattr("modelhub.infra.ai.providers.http.create_http_client", create_client)
        provider = create_ollama(None)

        async with aclosing(stream_text(model=provider.language_model("llama3.1"), prompt="hi")) as parts:
            async for part in parts:
                break

        assert part.text == "he"
        assert len(clients) == 1
        assert clients[0].is_closed

    @pytest.mark.asyncio
    async def test_stream_error_status(self, mock_http):
        client, _ = mock_http(lambda request: httpx.Response(404, text="model not found"))
        provider = create_ollama(None, http_client=client)

        with pytest.raises(APIError) as exc_info:
            async for _ in stream_text(model=provider.language_model("nope"), prompt="hi"):
                pass

        assert exc_info.value.status_code == 404
        assert exc_info.value.response_body == "model not found"


# ──────────────────────────────────────────────────────────────
# Test Tongyi / Azure
# ──────────────────────────────────────────────────────────────


class TestTongyi:
    """Tests for the DashScope adapter."""

    @pytest.mark.asyncio
    async def test_native_rerank(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                {
                    "output": {"results": [{"index": 0, "relevance_score": 0.7, "document": {"text": "a"}}]},
                    "usage": {"total_tokens": 3},
                    "request_id": "r-1",
                },
            ),
        )
        provider = create_tongyi({"api_key": "ds"}, http_client=client)

        result = await rerank(model=provider.rerank_model("gte-rerank-v2"), query="q", documents=["a"])

        assert result.results[0].relevance_score == 0.7
        assert result.results[0].document == "a"
        assert str(transport.last_request.url) == DASHSCOPE_RERANK_URL
        assert transport.last_json() == {
            "model": "gte-rerank-v2",
            "input": {"query": "q", "documents": ["a"]},
            "parameters": {"return_documents": False, "top_n": 1},
        }

    @pytest.mark.asyncio
    async def test_error_body_raises(self, mock_http, json_response):
        client, _ = mock_http(json_response({"code": "InvalidApiKey", "message": "bad key"}))
        provider = create_tongyi({"api_key": "ds"}, http_client=client)

        with pytest.raises(APIError, match="InvalidApiKey"):
            await rerank(model=provider.rerank_model(""), query="q", documents=["a"])

    def test_language_uses_compatible_mode(self):
        provider = create_tongyi()

        assert provider.config.base_url == "https://dashscope.aliyuncs.com/compatible-mode/v1"


class TestAzure:
    """Tests for the Azure OpenAI adapter."""

    @pytest.mark.asyncio
    async def test_deployment_request(self, mock_http):
        completion = {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 1,
            "model": "gpt-4o",
            "choices": [
                {"index": 0, "message": {"role": "assistant", "content": "ok"}, "finish_reason": "stop"},
            ],
        }
        client, transport = mock_http(lambda request: httpx.Response(200, json=completion))
        provider = create_azure(
            {
                "api_key": "az",
                "endpoint": "https://res.openai.azure.com",
                "api_version": "2024-10-21",
            },
            http_client=client,
        )

        result = await generate_text(model=provider.language_model("gpt4o-deploy"), prompt="hi")

        assert result.text == "ok"
        request = transport.last_request
        assert "/openai/deployments/gpt4o-deploy/chat/completions" in request.url.path
        assert request.url.params["api-version"] == "2024-10-21"
        assert request.headers["api-key"] == "az"

    def test_sdk_client_without_timeout_disables_it(self):
        provider = create_azure({"api_key": "az", "endpoint": "https://res.openai.azure.com"})

        assert provider._sdk_client().timeout == httpx.Timeout(None)

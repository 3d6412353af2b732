"""Unit tests for the OpenAI wire-format model clients.

Requests are served by httpx.MockTransport through the ``mock_http`` fixture,
so both the SDK-backed and the REST models run end to end without network.
"""

from __future__ import annotations

import json
from contextlib import aclosing

import httpx
import openai
import pytest

from modelhub.core.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    RateLimitError,
)
from modelhub.infra.ai.generation import (
    embed_many,
    generate_image,
    generate_speech,
    generate_text,
    generate_transcription,
    moderate,
    rerank,
    stream_text,
)
from modelhub.infra.ai.providers.base import RerankParams
from modelhub.infra.ai.providers.http import ClientConfig, build_headers
from modelhub.infra.ai.providers.openai_compatible import create_openai_compatible
from modelhub.infra.ai.providers.openai_provider import create_openai

BASE_URL = "https://llm.test/v1"


def chat_completion(content: str = "hi", **message_extra) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1,
        "model": "m",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content, **message_extra},
                "finish_reason": "stop",
            },
        ],
        "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
    }


def sse(*events: dict) -> bytes:
    lines = [f"data: {json.dumps(event)}\n\n" for event in events]
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


def chunk(delta: dict, finish_reason: str | None = None) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1,
        "model": "m",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }


class TrackedStream(httpx.AsyncByteStream):
    """Response body that records whether the response was closed."""

    def __init__(self, body: bytes) -> None:
        self.body = body
        self.closed = False

    async def __aiter__(self):
        yield self.body

    async def aclose(self) -> None:
        self.closed = True


# ──────────────────────────────────────────────────────────────
# Test Headers / Config
# ──────────────────────────────────────────────────────────────


class TestBuildHeaders:
    """Tests for build_headers()."""

    def test_bearer_auth(self):
        assert build_headers("k") == {"Authorization": "Bearer k"}

    def test_no_key_sends_no_auth(self):
        assert build_headers(None, {"X-A": "1"}) == {"X-A": "1"}

    def test_caller_headers_win(self):
        headers = build_headers("k", {"Authorization": "Token abc"})

        assert headers == {"Authorization": "Token abc"}

    def test_raw_key_header(self):
        headers = build_headers("k", auth_header="x-api-key", auth_scheme=None)

        assert headers == {"x-api-key": "k"}


class TestClientConfig:
    """Tests for ClientConfig URL handling."""

    def test_url_joins_paths(self):
        config = ClientConfig(provider="p", base_url="https://h/v1/")

        assert config.url("/rerank") == "https://h/v1/rerank"
        assert config.url("") == "https://h/v1"

    def test_missing_base_url_raises_configuration_error(self):
        config = ClientConfig(provider="p", base_url=None)

        with pytest.raises(ConfigurationError) as exc_info:
            config.url("/rerank")

        assert exc_info.value.provider == "p"


# ──────────────────────────────────────────────────────────────
# Test SDK-backed Models
# ──────────────────────────────────────────────────────────────


class TestChatLanguageModel:
    """Tests for the Chat Completions model through the openai SDK."""

    @pytest.mark.asyncio
    async def test_generate_text(self, mock_http, json_response):
        client, transport = mock_http(json_response(chat_completion("hello", reasoning_content="think")))
        provider = create_openai_compatible(
            {"api_key": "sk-1", "base_url": BASE_URL}, provider_id="gw", http_client=client,
        )

        result = await generate_text(
            model=provider.language_model("m"), prompt="hi", temperature=0.5,
        )

        assert result.text == "hello"
        assert result.reasoning == "think"
        assert result.finish_reason == "stop"
        assert result.usage.total_tokens == 5
        request = transport.last_request
        assert str(request.url) == f"{BASE_URL}/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-1"
        body = transport.last_json()
        assert body["model"] == "m"
        assert body["messages"] == [{"role": "user", "content": "hi"}]
        assert body["temperature"] == 0.5

    @pytest.mark.asyncio
    async def test_provider_options_are_sent_in_body(self, mock_http, json_response):
        client, transport = mock_http(json_response(chat_completion()))
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        await generate_text(
            model=provider.language_model("m"),
            prompt="hi",
            provider_options={"enable_thinking": True},
        )

        assert transport.last_json()["enable_thinking"] is True

    @pytest.mark.asyncio
    async def test_stream_text(self, mock_http):
        body = sse(
            chunk({"role": "assistant", "content": ""}),
            chunk({"reasoning_content": "hmm"}),
            chunk({"content": "he"}),
            chunk({"content": "llo"}, finish_reason="stop"),
            {
                "id": "chatcmpl-1",
                "object": "chat.completion.chunk",
                "created": 1,
                "model": "m",
                "choices": [],
                "usage": {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3},
            },
        )
        client, transport = mock_http(
            lambda request: httpx.Response(
                200, content=body, headers={"content-type": "text/event-stream"},
            ),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        parts = [p async for p in stream_text(model=provider.language_model("m"), prompt="hi")]

        assert [(p.type, p.text) for p in parts[:-1]] == [
            ("reasoning-delta", "hmm"),
            ("text-delta", "he"),
            ("text-delta", "llo"),
        ]
        assert parts[-1].type == "finish"
        assert parts[-1].finish_reason == "stop"
        assert parts[-1].usage.total_tokens == 3
        sent = transport.last_json()
        assert sent["stream"] is True
        assert sent["stream_options"] == {"include_usage": True}

    @pytest.mark.asyncio
    async def test_sdk_errors_propagate_without_retry(self, mock_http):
        client, transport = mock_http(
            lambda request: httpx.Response(500, json={"error": {"message": "down"}}),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        with pytest.raises(openai.InternalServerError):
            await generate_text(model=provider.language_model("m"), prompt="hi")

        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_missing_base_url_fails_at_call(self):
        provider = create_openai_compatible({"api_key": "k"}, provider_id="bare")
        model = provider.language_model("m")

        with pytest.raises(ConfigurationError):
            await generate_text(model=model, prompt="hi")

    @pytest.mark.asyncio
    async def test_missing_key_fails_at_call_not_at_binding(self, mock_http, json_response):
        client, transport = mock_http(json_response(chat_completion()))
        provider = create_openai_compatible({"base_url": BASE_URL}, http_client=client)
        model = provider.language_model("m")

        with pytest.raises(openai.OpenAIError):
            await generate_text(model=model, prompt="hi")

        assert transport.requests == []

    @pytest.mark.parametrize(
        ("timeout", "expected"),
        [(None, httpx.Timeout(None)), (12.5, httpx.Timeout(12.5))],
    )
    def test_sdk_client_uses_configured_timeout(self, timeout, expected):
        """No timeout must disable it rather than fall back to the SDK default."""
        provider = create_openai_compatible(
            {"api_key": "sk", "base_url": BASE_URL, "timeout": timeout},
        )

        assert provider._sdk_client().timeout == expected

    @pytest.mark.asyncio
    async def test_stream_response_closed_on_early_exit(self, mock_http):
        stream = TrackedStream(sse(chunk({"content": "he"}), chunk({"content": "llo"}, "stop")))
        client, _ = mock_http(
            lambda request: httpx.Response(
                200, stream=stream, headers={"content-type": "text/event-stream"},
            ),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        async with aclosing(stream_text(model=provider.language_model("m"), prompt="hi")) as parts:
            async for part in parts:
                break

        assert part.text == "he"
        assert stream.closed is True


class TestEmbeddingModel:
    """Tests for the embeddings model."""

    @pytest.mark.asyncio
    async def test_embeddings_ordered_by_index(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                {
                    "object": "list",
                    "model": "e",
                    "data": [
                        {"object": "embedding", "index": 1, "embedding": [2.0, 2.5]},
                        {"object": "embedding", "index": 0, "embedding": [1.0, 1.5]},
                    ],
                    "usage": {"prompt_tokens": 4, "total_tokens": 4},
                },
            ),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        result = await embed_many(model=provider.embedding_model("e"), values=["a", "b"])

        assert result.embeddings == [[1.0, 1.5], [2.0, 2.5]]
        assert result.usage.total_tokens == 4
        assert str(transport.last_request.url) == f"{BASE_URL}/embeddings"
        assert transport.last_json()["input"] == ["a", "b"]


# ──────────────────────────────────────────────────────────────
# Test REST Models
# ──────────────────────────────────────────────────────────────


class TestImageModel:
    """Tests for POST /images/generations."""

    @pytest.mark.asyncio
    async def test_defaults_and_result(self, mock_http, json_response):
        client, transport = mock_http(
            json_response({"created": 1, "data": [{"url": "https://img/1.png", "revised_prompt": "a cat"}]}),
        )
        provider = create_openai({"api_key": "sk"}, http_client=client)

        result = await generate_image(model=provider.image_model("dall-e-3"), prompt="cat")

        assert result.images[0].url == "https://img/1.png"
        assert result.images[0].revised_prompt == "a cat"
        assert str(transport.last_request.url) == "https://api.openai.com/v1/images/generations"
        assert transport.last_json() == {
            "model": "dall-e-3",
            "prompt": "cat",
            "n": 1,
            "size": "1024x1024",
            "quality": "standard",
            "style": "vivid",
            "response_format": "url",
        }

    @pytest.mark.asyncio
    async def test_organization_and_project_headers(self, mock_http, json_response):
        client, transport = mock_http(json_response({"data": []}))
        provider = create_openai(
            {"api_key": "sk", "organization": "org-1", "project": "proj-1"},
            http_client=client,
        )

        await generate_image(model=provider.image_model("dall-e-3"), prompt="cat")

        headers = transport.last_request.headers
        assert headers["openai-organization"] == "org-1"
        assert headers["openai-project"] == "proj-1"


class TestSpeechModel:
    """Tests for POST /audio/speech."""

    @pytest.mark.asyncio
    async def test_returns_audio_bytes(self, mock_http):
        client, transport = mock_http(
            lambda request: httpx.Response(200, content=b"RIFF....", headers={"content-type": "audio/wav"}),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        result = await generate_speech(
            model=provider.speech_model("tts-1"), text="hello", response_format="wav",
        )

        assert result.audio == b"RIFF...."
        assert result.format == "wav"
        assert transport.last_json() == {
            "model": "tts-1",
            "input": "hello",
            "voice": "alloy",
            "speed": 1.0,
            "response_format": "wav",
        }


class TestTranscriptionModel:
    """Tests for POST /audio/transcriptions."""

    @pytest.mark.asyncio
    async def test_json_response(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                {
                    "text": "hello world",
                    "language": "english",
                    "duration": 1.5,
                    "segments": [{"id": 0, "start": 0.0, "end": 1.5, "text": "hello world"}],
                },
            ),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        result = await generate_transcription(
            model=provider.transcription_model("whisper-1"),
            audio=b"\x00\x01\x02",
            language="en",
            response_format="verbose_json",
        )

        assert result.text == "hello world"
        assert result.duration == 1.5
        assert result.segments[0].end == 1.5
        request = transport.last_request
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="model"' in request.content
        assert b"whisper-1" in request.content
        assert b'filename="audio.mp3"' in request.content

    @pytest.mark.asyncio
    async def test_text_response_format(self, mock_http):
        client, _ = mock_http(lambda request: httpx.Response(200, text="plain words"))
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        result = await generate_transcription(
            model=provider.transcription_model("whisper-1"),
            audio=b"\x00",
            response_format="text",
        )

        assert result.text == "plain words"
        assert result.segments is None


class TestModerationModel:
    """Tests for POST /moderations."""

    @pytest.mark.asyncio
    async def test_results(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                {
                    "id": "modr-1",
                    "model": "omni-moderation-2024-09-26",
                    "results": [
                        {
                            "flagged": True,
                            "categories": {"violence": True},
                            "category_scores": {"violence": 0.97},
                        },
                    ],
                },
            ),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        result = await moderate(model=provider.moderation_model("omni-moderation-latest"), input="x")

        assert result.model == "omni-moderation-2024-09-26"
        assert result.results[0].flagged is True
        assert result.results[0].category_scores == {"violence": 0.97}
        assert transport.last_json() == {"model": "omni-moderation-latest", "input": "x"}


class TestRerankModel:
    """Tests for POST /rerank."""

    @pytest.mark.asyncio
    async def test_request_defaults_and_results(self, mock_http, json_response):
        client, transport = mock_http(
            json_response(
                {
                    "results": [
                        {"index": 1, "relevance_score": 0.9},
                        {"index": 0, "relevance_score": 0.1},
                    ],
                    "usage": {"total_tokens": 12},
                },
            ),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        result = await rerank(
            model=provider.rerank_model("bge-reranker"), query="q", documents=["a", "b"],
        )

        assert [item.index for item in result.results] == [1, 0]
        assert result.model == "bge-reranker"
        assert result.usage.total_tokens == 12
        assert transport.last_json() == {
            "model": "bge-reranker",
            "query": "q",
            "documents": ["a", "b"],
            "top_n": 2,
            "return_documents": False,
        }

    @pytest.mark.asyncio
    async def test_rankings_and_score_fields(self, mock_http, json_response):
        client, _ = mock_http(
            json_response(
                {
                    "model": "r",
                    "rankings": [{"index": 0, "score": 0.4, "document": {"text": "a"}}],
                },
            ),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        result = await provider.rerank_model("r").do_rerank(
            RerankParams(query="q", documents=["a"], return_documents=True),
        )

        assert result.results[0].relevance_score == 0.4
        assert result.results[0].document == "a"


# ──────────────────────────────────────────────────────────────
# Test Error Mapping
# ──────────────────────────────────────────────────────────────


class TestErrorMapping:
    """Tests for non-2xx responses of REST models."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_errors(self, mock_http, status):
        client, _ = mock_http(lambda request: httpx.Response(status, text="bad key"))
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, provider_id="gw", http_client=client)

        with pytest.raises(AuthenticationError) as exc_info:
            await generate_image(model=provider.image_model("m"), prompt="cat")

        assert exc_info.value.status_code == status
        assert exc_info.value.provider == "gw"

    @pytest.mark.asyncio
    async def test_rate_limit_reads_retry_after(self, mock_http):
        client, _ = mock_http(
            lambda request: httpx.Response(429, text="slow down", headers={"retry-after": "7"}),
        )
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        with pytest.raises(RateLimitError) as exc_info:
            await moderate(model=provider.moderation_model("m"), input="x")

        assert exc_info.value.retry_after == 7.0
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_server_error_carries_body(self, mock_http):
        client, transport = mock_http(lambda request: httpx.Response(503, text="overloaded"))
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, provider_id="gw", http_client=client)

        with pytest.raises(APIError) as exc_info:
            await generate_speech(model=provider.speech_model("tts"), text="hi")

        error = exc_info.value
        assert error.status_code == 503
        assert error.response_body == "overloaded"
        assert str(error) == "gw API error (503): overloaded"
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self, mock_http):
        def fail(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = mock_http(fail)
        provider = create_openai_compatible({"api_key": "sk", "base_url": BASE_URL}, http_client=client)

        with pytest.raises(httpx.ConnectError):
            await rerank(model=provider.rerank_model("r"), query="q", documents=["a"])

    @pytest.mark.asyncio
    async def test_rest_model_without_base_url(self):
        provider = create_openai_compatible(None, provider_id="bare")

        with pytest.raises(ConfigurationError):
            await generate_image(model=provider.image_model("m"), prompt="cat")

"""Shared httpx plumbing for REST model clients.

Model clients never retry and never catch transport errors: ``httpx``
timeouts and connection failures reach the caller as raised by httpx. A
non-2xx response is turned into ``APIError`` (or ``AuthenticationError`` /
``RateLimitError``) carrying the status code and body.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import aclosing, asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import httpx

from modelhub.core.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    RateLimitError,
)

logger = logging.getLogger(__name__)


def build_headers(
    api_key: str | None,
    headers: Mapping[str, str] | None = None,
    *,
    auth_header: str = "Authorization",
    auth_scheme: str | None = "Bearer",
) -> dict[str, str]:
    """Build request headers: vendor auth first, caller headers on top.

    No auth header is sent when ``api_key`` is empty.

    Args:
        api_key: Vendor API key.
        headers: Caller-supplied headers; these win over the auth header.
        auth_header: Header carrying the key.
        auth_scheme: Prefix such as ``Bearer``; None sends the raw key.

    Returns:
        A new header dict.
    """
    result: dict[str, str] = {}
    if api_key:
        result[auth_header] = f"{auth_scheme} {api_key}" if auth_scheme else api_key
    if headers:
        result.update(headers)
    return result


@dataclass(frozen=True)
class ClientConfig:
    """Everything a model client needs to reach a vendor endpoint.

    Attributes:
        provider: Provider id, used in errors and logs.
        base_url: Endpoint root; None fails at call time with ConfigurationError.
        api_key: Vendor API key.
        headers: Extra headers from ProviderSettings.
        timeout: Request timeout in seconds.
        http_client: Shared client to use instead of a per-request one. It is
            never closed by model clients.
        auth_header: Header carrying the API key.
        auth_scheme: Prefix of the auth header value.
    """

    provider: str
    base_url: str | None
    api_key: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float | None = None
    http_client: httpx.AsyncClient | None = None
    auth_header: str = "Authorization"
    auth_scheme: str | None = "Bearer"

    def require_base_url(self) -> str:
        if not self.base_url:
            msg = f"Provider '{self.provider}' requires a base_url"
            raise ConfigurationError(msg, provider=self.provider)
        return self.base_url.rstrip("/")

    def url(self, path: str) -> str:
        base = self.require_base_url()
        path = path.lstrip("/")
        return f"{base}/{path}" if path else base

    def request_headers(self) -> dict[str, str]:
        return build_headers(
            self.api_key,
            self.headers,
            auth_header=self.auth_header,
            auth_scheme=self.auth_scheme,
        )


class SDKClientHolder:
    """Build a vendor SDK client on first use and reuse it afterwards.

    Construction is deferred so binding a model never fails, even when the
    key or endpoint is missing; the SDK reports that on the first call.
    """

    def __init__(self, build: Callable[[], Any]) -> None:
        self._build = build
        self._client: Any = None

    def __call__(self) -> Any:
        if self._client is None:
            self._client = self._build()
        return self._client


def sdk_timeout(timeout: float | None) -> httpx.Timeout:
    """Translate a settings timeout for httpx and the vendor SDKs.

    None disables the timeout. The SDKs only fall back to their own default
    when no timeout is passed at all, so it is always passed explicitly.
    """
    return httpx.Timeout(timeout)


def create_http_client(timeout: float | None) -> httpx.AsyncClient:
    """Create a client with the configured timeout (None disables it)."""
    return httpx.AsyncClient(timeout=sdk_timeout(timeout))


@asynccontextmanager
async def open_client(config: ClientConfig) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the shared client, or a short-lived one closed on exit."""
    if config.http_client is not None:
        yield config.http_client
        return
    async with create_http_client(config.timeout) as client:
        yield client


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def raise_for_status(response: httpx.Response, provider: str) -> None:
    """Raise the matching APIError subclass for a non-2xx response."""
    if response.is_success:
        return
    body = response.text
    status = response.status_code
    if status in (401, 403):
        raise AuthenticationError(provider=provider, status_code=status, response_body=body)
    if status == 429:
        raise RateLimitError(
            provider=provider,
            retry_after=_retry_after(response),
            response_body=body,
        )
    msg = f"{provider} API error ({status}): {body}"
    raise APIError(msg, provider=provider, status_code=status, response_body=body)


async def post_json(
    config: ClientConfig,
    path: str,
    body: dict[str, Any],
    *,
    operation: str,
) -> Any:
    """POST a JSON body and return the decoded JSON response."""
    url = config.url(path)
    logger.debug(
        f"{config.provider} {operation} request",
        extra={"provider": config.provider, "operation": operation, "url": url},
    )
    async with open_client(config) as client:
        response = await client.post(url, json=body, headers=config.request_headers())
    raise_for_status(response, config.provider)
    return response.json()


async def post_for_bytes(
    config: ClientConfig,
    path: str,
    body: dict[str, Any],
    *,
    operation: str,
) -> bytes:
    """POST a JSON body and return the raw response bytes (audio, files)."""
    url = config.url(path)
    logger.debug(
        f"{config.provider} {operation} request",
        extra={"provider": config.provider, "operation": operation, "url": url},
    )
    async with open_client(config) as client:
        response = await client.post(url, json=body, headers=config.request_headers())
    raise_for_status(response, config.provider)
    return response.content


async def post_multipart(
    config: ClientConfig,
    path: str,
    *,
    data: dict[str, Any],
    files: dict[str, tuple[str, bytes, str]],
    operation: str,
    expect_json: bool = True,
) -> Any:
    """POST a multipart form; return decoded JSON, or text if ``expect_json`` is False."""
    url = config.url(path)
    logger.debug(
        f"{config.provider} {operation} request",
        extra={"provider": config.provider, "operation": operation, "url": url},
    )
    async with open_client(config) as client:
        response = await client.post(
            url,
            data=data,
            files=files,
            headers=config.request_headers(),
        )
    raise_for_status(response, config.provider)
    return response.json() if expect_json else response.text


async def stream_lines(
    config: ClientConfig,
    path: str,
    body: dict[str, Any],
    *,
    operation: str,
) -> AsyncIterator[str]:
    """POST a JSON body and yield non-empty response lines as they arrive.

    The response and any per-request client are released when the generator
    is closed, including when a consumer stops early and calls ``aclose``.
    """
    url = config.url(path)
    logger.debug(
        f"{config.provider} {operation} stream request",
        extra={"provider": config.provider, "operation": operation, "url": url},
    )
    async with open_client(config) as client:
        async with client.stream(
            "POST", url, json=body, headers=config.request_headers(),
        ) as response:
            if not response.is_success:
                await response.aread()
                raise_for_status(response, config.provider)
            async for line in response.aiter_lines():
                if line.strip():
                    yield line


async def iter_sse_json(lines: AsyncIterator[str]) -> AsyncIterator[Any]:
    """Decode ``data:`` payloads of a server-sent event stream.

    Stops at the ``[DONE]`` sentinel used by OpenAI-style APIs. ``lines`` is
    closed when decoding stops or this generator is closed.
    """
    async with aclosing(lines):
        async for line in lines:
            if not line.startswith("data:"):
                continue
            payload = line[len("data:"):].strip()
            if payload == "[DONE]":
                return
            if payload:
                yield json.loads(payload)


async def iter_ndjson(lines: AsyncIterator[str]) -> AsyncIterator[Any]:
    """Decode a newline-delimited JSON stream, closing ``lines`` when done."""
    async with aclosing(lines):
        async for line in lines:
            yield json.loads(line)

"""Token usage estimation for vendors that report none.

Some OpenAI-compatible gateways and local servers omit usage, or return it
with zero totals. The estimate is a character heuristic (roughly four
characters per token), good enough for quota accounting but not billing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from modelhub.infra.ai.providers.base import ChatMessage, Usage

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


def count_tokens(text: str | None) -> int:
    """Estimate the token count of ``text``; any non-empty text is at least 1."""
    if not text:
        return 0
    return max(1, len(text) // CHARS_PER_TOKEN)


def estimate_token_usage(input_text: str | None, output_text: str | None) -> Usage:
    input_tokens = count_tokens(input_text)
    output_tokens = count_tokens(output_text)
    return Usage(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
    )


def format_messages_for_token_count(messages: Sequence[ChatMessage]) -> str:
    """Flatten a conversation into ``role: content`` lines."""
    return "\n".join(f"{message.role}: {message.content}" for message in messages)


def has_usage(usage: Usage | None) -> bool:
    """True when the vendor reported a positive total."""
    return usage is not None and bool(usage.total_tokens)


def ensure_usage(
    usage: Usage | None,
    *,
    input_text: str | None,
    output_text: str | None,
    provider: str | None = None,
) -> Usage:
    """Return the vendor usage, or an estimate when it is missing or zero."""
    if has_usage(usage):
        return usage
    logger.debug(
        "Vendor reported no token usage, estimating",
        extra={"provider": provider},
    )
    return estimate_token_usage(input_text, output_text)

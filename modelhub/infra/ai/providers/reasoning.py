"""Per-vendor request options that toggle model thinking.

Vendors expose reasoning through different body fields. ``get_reasoning_options``
maps a single ``thinking`` flag to the right field so callers can merge the
result into ``provider_options`` without knowing the vendor.

Usage:
    options = get_reasoning_options("deepseek", thinking=True)
    result = await generate_text(model=model, prompt="...", provider_options=options)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

# Smallest thinking budget the Anthropic Messages API accepts.
ANTHROPIC_THINKING_BUDGET = 1024

ReasoningBuilder = Callable[[bool], dict[str, Any]]


def _reasoning_effort(thinking: bool) -> dict[str, Any]:
    return {"reasoning_effort": "medium" if thinking else "low"}


def _anthropic(thinking: bool) -> dict[str, Any]:
    if thinking:
        return {"thinking": {"type": "enabled", "budget_tokens": ANTHROPIC_THINKING_BUDGET}}
    return {"thinking": {"type": "disabled"}}


def _gemini(thinking: bool) -> dict[str, Any]:
    # -1 lets the model pick its own budget; 0 turns thinking off
    config = {"thinkingBudget": -1, "includeThoughts": True} if thinking else {"thinkingBudget": 0}
    return {"generationConfig": {"thinkingConfig": config}}


def _thinking_type(thinking: bool) -> dict[str, Any]:
    return {"thinking": {"type": "enabled" if thinking else "disabled"}}


def _enable_thinking(thinking: bool) -> dict[str, Any]:
    return {"enable_thinking": thinking}


def _openrouter(thinking: bool) -> dict[str, Any]:
    return {"reasoning": {"enabled": thinking}}


def _ollama(thinking: bool) -> dict[str, Any]:
    return {"think": thinking}


REASONING_BUILDERS: dict[str, ReasoningBuilder] = {
    "openai": _reasoning_effort,
    "azure": _reasoning_effort,
    "anthropic": _anthropic,
    "google": _gemini,
    "deepseek": _thinking_type,
    "moonshot": _thinking_type,
    "volcengine": _thinking_type,
    "zhipuai": _thinking_type,
    "spark": _thinking_type,
    "tongyi": _enable_thinking,
    "siliconflow": _enable_thinking,
    "gitee_ai": _enable_thinking,
    "hunyuan": _enable_thinking,
    "wenxin": _enable_thinking,
    "custom": _enable_thinking,
    "openrouter": _openrouter,
    "ollama": _ollama,
}


def get_reasoning_options(provider_id: str, *, thinking: bool | None = None) -> dict[str, Any]:
    """Build the ``provider_options`` that switch thinking on or off.

    Args:
        provider_id: Registry id of the provider serving the model.
        thinking: True to request thinking, False to suppress it, None to
            leave the vendor default untouched.

    Returns:
        A new dict to merge into ``provider_options``; empty when ``thinking``
        is None or the vendor has no thinking switch.
    """
    if thinking is None:
        return {}
    builder = REASONING_BUILDERS.get(provider_id)
    if builder is None:
        return {}
    return builder(thinking)

"""Provider and model selection for inbound chat-completion requests."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from .config import Settings

NVIDIA = "nvidia"
MOONSHOT = "moonshot"

DEFAULT_BASE_URLS = {
    NVIDIA: "https://integrate.api.nvidia.com/v1",
    MOONSHOT: "https://api.moonshot.ai/v1",
}

SECRET_NAMES = {
    NVIDIA: "NVIDIA_API_KEY",
    MOONSHOT: "MOONSHOT_API_KEY",
}

MOONSHOT_MARKER = "kimi"
MOONSHOT_CHAT_MODEL = "kimi-k2-0905-preview"
MOONSHOT_THINKING_MODEL = "kimi-k2-thinking"

# Public aliases accepted by the relay -> NVIDIA NIM model identifiers.
NVIDIA_MODELS = {
    "deepseek-r1": "deepseek-ai/deepseek-r1",
    "deepseek-r1-0528": "deepseek-ai/deepseek-r1-0528",
    "deepseek-v3": "deepseek-ai/deepseek-v3.1",
    "deepseek-v3.1": "deepseek-ai/deepseek-v3.1",
    "deepseek-v3.1-thinking": "deepseek-ai/deepseek-v3.1",
    "llama-3.1-405b": "meta/llama-3.1-405b-instruct",
    "llama-3.3-70b": "meta/llama-3.3-70b-instruct",
    "llama-4-maverick": "meta/llama-4-maverick-17b-128e-instruct",
    "qwen3-235b": "qwen/qwen3-235b-a22b",
    "qwen3-coder": "qwen/qwen3-coder-480b-a35b-instruct",
    "mistral-large": "mistralai/mistral-large-2-instruct",
    "nemotron-ultra": "nvidia/llama-3.1-nemotron-ultra-253b-v1",
}

# Aliases whose provider model needs extra body fields to enable reasoning.
NVIDIA_EXTRA_BODY: dict[str, dict[str, Any]] = {
    "deepseek-v3.1-thinking": {"chat_template_kwargs": {"thinking": True}},
}


@dataclass(frozen=True)
class Route:
    provider: str
    base_url: str
    model: str
    secret_name: str
    extra_body: dict[str, Any] = field(default_factory=dict)

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


def _base_urls(settings: Settings | None) -> dict[str, str]:
    if settings is None:
        return DEFAULT_BASE_URLS
    return {
        NVIDIA: settings.nvidia_base_url,
        MOONSHOT: settings.moonshot_base_url,
    }


def resolve_route(model: str, settings: Settings | None = None) -> Route:
    """Map a public model name to a provider, credential and provider model.

    Names containing ``kimi`` go to Moonshot; everything else goes to NVIDIA,
    translated through ``NVIDIA_MODELS`` when known and passed through
    unchanged otherwise.
    """
    base_urls = _base_urls(settings)
    lowered = model.lower()

    if MOONSHOT_MARKER in lowered:
        target = (
            MOONSHOT_THINKING_MODEL if "thinking" in lowered else MOONSHOT_CHAT_MODEL
        )
        return Route(
            provider=MOONSHOT,
            base_url=base_urls[MOONSHOT],
            model=target,
            secret_name=SECRET_NAMES[MOONSHOT],
        )

    return Route(
        provider=NVIDIA,
        base_url=base_urls[NVIDIA],
        model=NVIDIA_MODELS.get(model, model),
        secret_name=SECRET_NAMES[NVIDIA],
        extra_body=copy.deepcopy(NVIDIA_EXTRA_BODY.get(model, {})),
    )

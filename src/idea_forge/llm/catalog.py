"""Supported model catalog with per-model availability."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .registry import ProviderRegistry

DEFAULT_MODEL = "deepseek-chat"


@dataclass(frozen=True)
class ModelInfo:
    value: str
    label: str
    provider: str
    badge: Optional[str] = None
    description: Optional[str] = None
    # Price per million tokens (CNY).
    pricing: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "value": self.value,
            "label": self.label,
            "provider": self.provider,
        }
        if self.badge:
            payload["badge"] = self.badge
        if self.description:
            payload["description"] = self.description
        if self.pricing:
            payload["pricing"] = dict(self.pricing)
        return payload


SUPPORTED_MODELS: Dict[str, List[ModelInfo]] = {
    "recommended": [
        ModelInfo("deepseek-chat", "DeepSeek Chat", "DeepSeek", "Recommended", "Fast and cost-effective", {"input": 1, "output": 2}),
        ModelInfo("qwen-plus", "Qwen Plus", "Qwen", "Recommended", "Balanced quality and cost", {"input": 4, "output": 12}),
        ModelInfo("qwen-max", "Qwen Max", "Qwen", "Strongest", "Largest Qwen model", {"input": 40, "output": 120}),
    ],
    "international": [
        ModelInfo("gpt-4-turbo", "GPT-4 Turbo", "OpenAI", None, "Most capable OpenAI model", {"input": 70, "output": 210}),
        ModelInfo("gpt-3.5-turbo", "GPT-3.5 Turbo", "OpenAI", None, "Fast and economical", {"input": 3.5, "output": 7}),
        ModelInfo("claude-3-opus-20240229", "Claude 3 Opus", "Anthropic", None, "Strong creative writing", {"input": 105, "output": 315}),
        ModelInfo("claude-3-sonnet-20240229", "Claude 3 Sonnet", "Anthropic", None, "Balanced performance", {"input": 21, "output": 70}),
    ],
    "other": [
        ModelInfo("deepseek-coder", "DeepSeek Coder", "DeepSeek", None, "Code generation", {"input": 1, "output": 2}),
        ModelInfo("qwen-turbo", "Qwen Turbo", "Qwen", None, "Lowest latency", {"input": 2, "output": 6}),
    ],
}


def all_models() -> List[ModelInfo]:
    return [model for group in SUPPORTED_MODELS.values() for model in group]


def default_model(config: Dict[str, Any] | None = None) -> str:
    return (config or {}).get("llm", {}).get("default_model") or DEFAULT_MODEL


def list_models(registry: ProviderRegistry, config: Dict[str, Any] | None = None) -> Dict[str, Any]:
    def entry(model: ModelInfo) -> Dict[str, Any]:
        return {**model.to_dict(), "available": registry.is_available(model.value)}

    return {
        "models": [entry(m) for m in all_models()],
        "grouped": {group: [entry(m) for m in models] for group, models in SUPPORTED_MODELS.items()},
        "defaultModel": default_model(config),
    }

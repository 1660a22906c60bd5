"""Dialect dispatch table."""

from __future__ import annotations

from typing import Dict

from ..types import Dialect, GenerationRequest, ProviderCall, ProviderProfile
from .anthropic_provider import AnthropicNativeAdapter
from .base import DialectAdapter
from .openai_provider import OpenAICompatibleAdapter

DIALECTS: Dict[Dialect, DialectAdapter] = {
    Dialect.OPENAI_COMPATIBLE: OpenAICompatibleAdapter(),
    Dialect.ANTHROPIC_NATIVE: AnthropicNativeAdapter(),
}


def adapter_for(dialect: Dialect) -> DialectAdapter:
    return DIALECTS[dialect]


def build_call(request: GenerationRequest, profile: ProviderProfile) -> ProviderCall:
    return adapter_for(profile.dialect).build(request, profile)

"""Shared LLM data structures and the generation error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class Dialect(Enum):
    OPENAI_COMPATIBLE = "openai_compatible"
    ANTHROPIC_NATIVE = "anthropic_native"


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    model: str
    system_prompt: Optional[str] = None
    temperature: float = 0.8
    max_tokens: int = 3000

    def __post_init__(self) -> None:
        if not isinstance(self.prompt, str):
            raise TypeError("GenerationRequest.prompt must be a string")
        if not isinstance(self.model, str) or not self.model.strip():
            raise ValueError("GenerationRequest.model cannot be empty")
        if self.system_prompt is not None and not isinstance(self.system_prompt, str):
            raise TypeError("GenerationRequest.system_prompt must be a string")
        if isinstance(self.temperature, bool) or not (0.0 <= float(self.temperature) <= 2.0):
            raise ValueError("GenerationRequest.temperature must be between 0.0 and 2.0")
        if isinstance(self.max_tokens, bool) or int(self.max_tokens) <= 0:
            raise ValueError("GenerationRequest.max_tokens must be > 0")


@dataclass(frozen=True)
class ProviderProfile:
    """Resolved connection bundle for one provider family."""

    provider: str
    base_url: str
    dialect: Dialect
    credential: Optional[str] = field(default=None, repr=False)
    extra_headers: Mapping[str, str] = field(default_factory=dict)
    routing_prefix: str = ""
    credential_env: Tuple[str, ...] = ()

    @property
    def authenticated(self) -> bool:
        return bool(self.credential)

    def wire_model(self, model: str) -> str:
        if self.routing_prefix and model.startswith(self.routing_prefix):
            return model[len(self.routing_prefix):]
        return model


@dataclass(frozen=True)
class ProviderCall:
    """A fully built call for one provider, ready for the transport.

    ``url`` is the request endpoint for plain HTTP dialects and the API base
    URL for SDK-backed ones.
    """

    provider: str
    dialect: Dialect
    url: str
    model: str
    payload: Dict[str, Any]
    headers: Mapping[str, str] = field(default_factory=dict, repr=False)
    secrets: Tuple[str, ...] = field(default=(), repr=False)
    # Set for SDK-backed dialects, which authenticate through the client.
    api_key: Optional[str] = field(default=None, repr=False)

    def with_stream(self) -> "ProviderCall":
        return replace(self, payload={**self.payload, "stream": True})


class GenerationError(RuntimeError):
    """Base error for anything that prevents a generation from returning text."""

    def __init__(self, message: str, *, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class UnsupportedModelError(GenerationError):
    def __init__(self, model: object) -> None:
        super().__init__(f"Unsupported model: {model!r}")
        self.model = model


class ConfigurationError(GenerationError):
    """The resolved provider has no usable credential."""


class TransportError(GenerationError):
    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        http_status: Optional[int] = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.http_status = http_status


class EmptyResponseError(GenerationError):
    """Provider returned a valid envelope without any text."""


class NonTextResponseError(GenerationError):
    """Provider returned only non-text content."""

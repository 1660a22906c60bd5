"""Multi-provider LLM routing."""

from .registry import ProviderRegistry, get_default_registry
from .router import LLMRouter
from .types import (
    ConfigurationError,
    Dialect,
    EmptyResponseError,
    GenerationError,
    GenerationRequest,
    NonTextResponseError,
    ProviderCall,
    ProviderProfile,
    TransportError,
    UnsupportedModelError,
)

__all__ = [
    "ConfigurationError",
    "Dialect",
    "EmptyResponseError",
    "GenerationError",
    "GenerationRequest",
    "LLMRouter",
    "NonTextResponseError",
    "ProviderCall",
    "ProviderProfile",
    "ProviderRegistry",
    "TransportError",
    "UnsupportedModelError",
    "get_default_registry",
]

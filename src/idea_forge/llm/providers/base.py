"""Dialect adapter interface."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from ..types import GenerationRequest, ProviderCall, ProviderProfile


class DialectAdapter(Protocol):
    name: str

    def build(self, request: GenerationRequest, profile: ProviderProfile) -> ProviderCall:
        ...

    def extract_text(self, envelope: Dict[str, Any]) -> str:
        ...

    def fragment(self, event: Dict[str, Any]) -> Optional[str]:
        """Text carried by one stream event, or None when it carries none."""
        ...

    def is_terminal(self, event: Dict[str, Any]) -> bool:
        ...


def error_detail(error: Any) -> str:
    """Human-readable message from a provider ``error`` object."""
    if isinstance(error, dict):
        message = error.get("message") or error.get("type") or error.get("code")
        if message:
            return str(message)
    return str(error)

"""Anthropic Messages API dialect."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..types import (
    EmptyResponseError,
    GenerationRequest,
    NonTextResponseError,
    ProviderCall,
    ProviderProfile,
    TransportError,
)
from .base import error_detail

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicNativeAdapter:
    name = "anthropic_native"

    def build(self, request: GenerationRequest, profile: ProviderProfile) -> ProviderCall:
        headers = {
            "x-api-key": profile.credential or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
            **profile.extra_headers,
        }
        payload: Dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
            "stream": False,
        }
        if request.system_prompt:
            payload["system"] = request.system_prompt

        return ProviderCall(
            provider=profile.provider,
            dialect=profile.dialect,
            url=f"{profile.base_url}/v1/messages",
            model=request.model,
            payload=payload,
            headers=headers,
            secrets=(profile.credential,) if profile.credential else (),
        )

    def extract_text(self, envelope: Dict[str, Any]) -> str:
        if envelope.get("type") == "error" or envelope.get("error"):
            raise TransportError(error_detail(envelope.get("error")))
        content = envelope.get("content")
        if not isinstance(content, list):
            raise TransportError("Malformed message: missing content")
        if not content:
            raise EmptyResponseError("Claude returned an empty response")

        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if not text:
                    raise EmptyResponseError("Claude returned an empty response")
                return str(text)
        raise NonTextResponseError("Claude returned a non-text response")

    def fragment(self, event: Dict[str, Any]) -> Optional[str]:
        event_type = event.get("type")
        if event_type == "error":
            raise TransportError(error_detail(event.get("error")))
        if event_type != "content_block_delta":
            return None
        delta = event.get("delta") or {}
        if delta.get("type") != "text_delta":
            return None
        text = delta.get("text")
        return text or None

    def is_terminal(self, event: Dict[str, Any]) -> bool:
        return event.get("type") == "message_stop"

"""OpenAI-compatible chat-completions dialect (DeepSeek, Qwen, OpenAI, Gemini, Groq, Ollama)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..types import (
    EmptyResponseError,
    GenerationRequest,
    NonTextResponseError,
    ProviderCall,
    ProviderProfile,
    TransportError,
)
from .base import error_detail


class OpenAICompatibleAdapter:
    name = "openai_compatible"

    def build(self, request: GenerationRequest, profile: ProviderProfile) -> ProviderCall:
        messages: List[Dict[str, str]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        model = profile.wire_model(request.model)
        payload = {
            "model": model,
            "messages": messages,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": False,
        }
        return ProviderCall(
            provider=profile.provider,
            dialect=profile.dialect,
            url=profile.base_url,
            model=model,
            payload=payload,
            headers=dict(profile.extra_headers),
            secrets=(profile.credential,) if profile.credential else (),
            api_key=profile.credential,
        )

    def extract_text(self, envelope: Dict[str, Any]) -> str:
        if envelope.get("error"):
            raise TransportError(error_detail(envelope["error"]))
        choices = envelope.get("choices")
        if not isinstance(choices, list):
            raise TransportError("Malformed chat completion: missing choices")
        if not choices:
            raise EmptyResponseError("Model returned an empty response")

        message = (choices[0] or {}).get("message") or {}
        content = message.get("content")
        if isinstance(content, list):
            texts = [
                part.get("text", "")
                for part in content
                if isinstance(part, dict) and part.get("type") == "text"
            ]
            if content and not texts:
                raise NonTextResponseError("Model returned a non-text response")
            content = "".join(texts)
        if not content:
            if message.get("tool_calls") or message.get("audio"):
                raise NonTextResponseError("Model returned a non-text response")
            raise EmptyResponseError("Model returned an empty response")
        if not isinstance(content, str):
            raise TransportError("Malformed chat completion: content is not text")
        return content

    def fragment(self, event: Dict[str, Any]) -> Optional[str]:
        if event.get("error"):
            raise TransportError(error_detail(event["error"]))
        choices = event.get("choices")
        if not choices:
            return None
        delta = (choices[0] or {}).get("delta") or {}
        content = delta.get("content")
        if isinstance(content, str) and content:
            return content
        return None

    def is_terminal(self, event: Dict[str, Any]) -> bool:
        # The SDK stream ends on its own after the last chunk.
        return False

"""Model identifier -> provider profile resolution."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional, Tuple

from .types import ConfigurationError, Dialect, ProviderProfile, UnsupportedModelError


@dataclass(frozen=True)
class ProviderRule:
    provider: str
    prefix: str
    dialect: Dialect
    default_base_url: str
    base_url_env: str
    credential_env: Tuple[str, ...] = ()
    static_credential: Optional[str] = None
    availability_env: Optional[str] = None
    extra_headers: Mapping[str, str] = field(default_factory=dict)
    strip_prefix: bool = False

    def matches(self, model: str) -> bool:
        return model.startswith(self.prefix)


# Order matters: first match wins.
PROVIDER_RULES: Tuple[ProviderRule, ...] = (
    ProviderRule(
        provider="deepseek",
        prefix="deepseek",
        dialect=Dialect.OPENAI_COMPATIBLE,
        default_base_url="https://api.deepseek.com",
        base_url_env="DEEPSEEK_BASE_URL",
        credential_env=("DEEPSEEK_API_KEY",),
    ),
    ProviderRule(
        provider="qwen",
        prefix="qwen",
        dialect=Dialect.OPENAI_COMPATIBLE,
        default_base_url="https://dashscope.aliyuncs.com/compatible-mode/v1",
        base_url_env="QWEN_BASE_URL",
        credential_env=("DASHSCOPE_API_KEY", "QWEN_API_KEY"),
        extra_headers={"X-DashScope-SSE": "enable"},
    ),
    ProviderRule(
        provider="openai",
        prefix="gpt",
        dialect=Dialect.OPENAI_COMPATIBLE,
        default_base_url="https://api.openai.com/v1",
        base_url_env="OPENAI_BASE_URL",
        credential_env=("OPENAI_API_KEY",),
    ),
    ProviderRule(
        provider="anthropic",
        prefix="claude",
        dialect=Dialect.ANTHROPIC_NATIVE,
        default_base_url="https://api.anthropic.com",
        base_url_env="ANTHROPIC_BASE_URL",
        credential_env=("ANTHROPIC_API_KEY",),
    ),
    ProviderRule(
        provider="gemini",
        prefix="gemini",
        dialect=Dialect.OPENAI_COMPATIBLE,
        default_base_url="https://generativelanguage.googleapis.com/v1beta/openai",
        base_url_env="GEMINI_BASE_URL",
        credential_env=("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    ),
    ProviderRule(
        provider="groq",
        prefix="groq/",
        dialect=Dialect.OPENAI_COMPATIBLE,
        default_base_url="https://api.groq.com/openai/v1",
        base_url_env="GROQ_BASE_URL",
        credential_env=("GROQ_API_KEY",),
        strip_prefix=True,
    ),
    ProviderRule(
        provider="ollama",
        prefix="ollama/",
        dialect=Dialect.OPENAI_COMPATIBLE,
        default_base_url="http://localhost:11434/v1",
        base_url_env="OLLAMA_BASE_URL",
        static_credential="ollama",
        availability_env="OLLAMA_BASE_URL",
        strip_prefix=True,
    ),
)


class ProviderRegistry:
    """Resolves model identifiers against an ordered rule table.

    The environment is copied once at construction, so a registry never
    observes later changes to ``os.environ``. Profiles are memoized per
    provider and are immutable.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        overrides: Mapping[str, Any] | None = None,
        rules: Tuple[ProviderRule, ...] = PROVIDER_RULES,
    ) -> None:
        self._environ: Dict[str, str] = dict(os.environ if environ is None else environ)
        self._overrides = dict(overrides or {})
        self._rules = tuple(rules)
        self._profiles: Dict[str, ProviderProfile] = {}

    def rules(self) -> Tuple[ProviderRule, ...]:
        return self._rules

    def _env(self, name: str) -> str:
        return (self._environ.get(name) or "").strip()

    def _rule_for(self, model: object) -> ProviderRule:
        if not isinstance(model, str) or not model.strip():
            raise UnsupportedModelError(model)
        for rule in self._rules:
            if rule.matches(model):
                return rule
        raise UnsupportedModelError(model)

    def _base_url(self, rule: ProviderRule) -> str:
        override = self._overrides.get(rule.provider) or {}
        base_url = self._env(rule.base_url_env) or str(override.get("base_url") or "") or rule.default_base_url
        return base_url.rstrip("/")

    def _credential(self, rule: ProviderRule) -> Optional[str]:
        if rule.static_credential is not None:
            return rule.static_credential
        for name in rule.credential_env:
            value = self._env(name)
            if value:
                return value
        return None

    def resolve(self, model: str) -> ProviderProfile:
        rule = self._rule_for(model)
        profile = self._profiles.get(rule.provider)
        if profile is None:
            profile = ProviderProfile(
                provider=rule.provider,
                base_url=self._base_url(rule),
                dialect=rule.dialect,
                credential=self._credential(rule),
                extra_headers=dict(rule.extra_headers),
                routing_prefix=rule.prefix if rule.strip_prefix else "",
                credential_env=rule.credential_env,
            )
            self._profiles[rule.provider] = profile
        return profile

    def resolve_authenticated(self, model: str) -> ProviderProfile:
        """Resolve and fail fast when the provider has no credential."""
        profile = self.resolve(model)
        if not profile.authenticated:
            names = "/".join(profile.credential_env) or "credential"
            raise ConfigurationError(
                f"API key for {model} is not configured. Set {names} in the environment.",
                provider=profile.provider,
            )
        return profile

    def is_available(self, model: str) -> bool:
        try:
            rule = self._rule_for(model)
        except UnsupportedModelError:
            return False
        if rule.availability_env:
            return bool(self._env(rule.availability_env))
        return self.resolve(model).authenticated


@lru_cache(maxsize=1)
def get_default_registry() -> ProviderRegistry:
    return ProviderRegistry()

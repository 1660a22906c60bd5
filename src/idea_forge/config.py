"""Configuration loading and defaults."""

from __future__ import annotations

import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

DEFAULT_SETTINGS: Dict[str, Any] = {
    "llm": {
        "default_model": "deepseek-chat",
        "temperature": 0.8,
        "max_tokens": 3000,
        "timeout_seconds": 60,
    },
    "retry": {
        "max_attempts": 3,
        "backoff_seconds": 1.0,
    },
    "use_cases": {
        "ideas": {"temperature": 0.8, "max_tokens": 3000},
        "socratic": {"temperature": 0.7, "max_tokens": 800},
        "validation": {"temperature": 0.3, "max_tokens": 2000},
    },
    "limits": {
        "interests_max_chars": 500,
        "topic_max_chars": 500,
        "demand_max_chars": 1000,
    },
    # Per-provider overrides, e.g. {"ollama": {"base_url": "http://gpu-box:11434/v1"}}.
    # Environment variables such as OLLAMA_BASE_URL take precedence.
    "providers": {},
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(
    settings_path: str = "config/settings.yaml",
    environ: Mapping[str, str] | None = None,
) -> Dict[str, Any]:
    """Loads settings.yaml, merges it onto defaults, then applies env overrides."""
    env = os.environ if environ is None else environ
    merged = deepcopy(DEFAULT_SETTINGS)
    config_path = Path(settings_path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            user_cfg = yaml.safe_load(f) or {}
        if not isinstance(user_cfg, dict):
            raise ValueError(f"Settings file must contain a mapping: {settings_path}")
        merged = _deep_merge(merged, user_cfg)

    default_model = env.get("DEFAULT_MODEL")
    if default_model:
        merged["llm"]["default_model"] = default_model
    return merged


def use_case_settings(config: Dict[str, Any], name: str) -> tuple[float, int]:
    """(temperature, max_tokens) for a use case, falling back to the llm defaults."""
    llm_cfg = config.get("llm", {})
    cfg = config.get("use_cases", {}).get(name, {})
    temperature = float(cfg.get("temperature", llm_cfg.get("temperature", 0.8)))
    max_tokens = int(cfg.get("max_tokens", llm_cfg.get("max_tokens", 3000)))
    return temperature, max_tokens

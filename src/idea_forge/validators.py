"""Input validation for the use-case handlers."""

from __future__ import annotations

from typing import Any, Dict, List

GENERATION_TYPES = ("trending", "random", "niche", "innovation", "scalability")
SOCRATIC_MODES = ("brainstorm", "refine")
HISTORY_ROLES = ("user", "assistant")

DEFAULT_LIMITS = {
    "interests": 500,
    "topic": 500,
    "demand": 1000,
}


class RequestValidationError(ValueError):
    def __init__(self, details: List[Dict[str, str]]) -> None:
        super().__init__("Invalid request: " + "; ".join(f"{d['field']}: {d['message']}" for d in details))
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": "Invalid request parameters", "details": list(self.details)}


def get_limit(config: Dict[str, Any], field: str) -> int:
    limits = config.get("limits", {})
    return int(limits.get(f"{field}_max_chars", DEFAULT_LIMITS[field]))


def _check_text(field: str, value: Any, config: Dict[str, Any], issues: List[Dict[str, str]]) -> None:
    if not isinstance(value, str) or not value.strip():
        issues.append({"field": field, "message": "is required"})
        return
    limit = get_limit(config, field)
    if len(value) > limit:
        issues.append({"field": field, "message": f"length {len(value)} exceeds {limit}"})


def _raise_if(issues: List[Dict[str, str]]) -> None:
    if issues:
        raise RequestValidationError(issues)


def validate_idea_request(interests: Any, generation_type: Any, config: Dict[str, Any]) -> None:
    issues: List[Dict[str, str]] = []
    _check_text("interests", interests, config, issues)
    if generation_type not in GENERATION_TYPES:
        issues.append({"field": "generationType", "message": f"must be one of {', '.join(GENERATION_TYPES)}"})
    _raise_if(issues)


def validate_socratic_request(mode: Any, topic: Any, history: Any, config: Dict[str, Any]) -> None:
    issues: List[Dict[str, str]] = []
    if mode not in SOCRATIC_MODES:
        issues.append({"field": "mode", "message": f"must be one of {', '.join(SOCRATIC_MODES)}"})
    _check_text("topic", topic, config, issues)
    if not isinstance(history, list):
        issues.append({"field": "history", "message": "must be a list"})
    else:
        for index, message in enumerate(history):
            if (
                not isinstance(message, dict)
                or message.get("role") not in HISTORY_ROLES
                or not isinstance(message.get("content"), str)
            ):
                issues.append({"field": f"history.{index}", "message": "must have role user/assistant and text content"})
    _raise_if(issues)


def validate_demand_request(demand: Any, config: Dict[str, Any]) -> None:
    issues: List[Dict[str, str]] = []
    _check_text("demand", demand, config, issues)
    _raise_if(issues)

"""Structured parsing of model output for the three use cases.

Models are asked for a JSON object and usually comply, but often wrap it in a
markdown code fence. Every parser here trims the text, strips an optional
fence, decodes the JSON and checks the shape its use case expects. Anything
that does not fit raises ``ParseError`` with the raw text attached so callers
can log it. All parsers are pure.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

_OPEN_FENCE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\n?")
_CLOSE_FENCE = re.compile(r"\n?[ \t]*```$")

FREQUENCY_LEVELS = ("high", "medium", "low")
PAIN_POINT_LEVELS = ("strong", "medium", "weak")
PAYMENT_LEVELS = ("high", "medium", "low")


class ParseError(ValueError):
    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(f"Failed to parse model response: {message}")
        self.reason = message
        self.raw_text = raw_text


@dataclass(frozen=True)
class BusinessIdea:
    title: str
    target_market: str
    revenue_model: str
    key_features: List[str] = field(default_factory=list)
    description: str = ""
    market_size: Optional[str] = None
    competition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": self.title,
            "targetMarket": self.target_market,
            "revenueModel": self.revenue_model,
            "keyFeatures": list(self.key_features),
            "description": self.description,
        }
        if self.market_size is not None:
            payload["marketSize"] = self.market_size
        if self.competition is not None:
            payload["competition"] = self.competition
        return payload


@dataclass(frozen=True)
class SocraticResponse:
    question: str
    suggestions: Optional[List[str]] = None
    insights: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"question": self.question}
        if self.suggestions is not None:
            payload["suggestions"] = list(self.suggestions)
        if self.insights is not None:
            payload["insights"] = self.insights
        return payload


@dataclass(frozen=True)
class DemandValidation:
    is_real_demand: bool
    score: int
    frequency: str
    pain_point: str
    payment_willingness: str
    reasoning: str
    action_plan: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isRealDemand": self.is_real_demand,
            "score": self.score,
            "frequency": self.frequency,
            "painPoint": self.pain_point,
            "paymentWillingness": self.payment_willingness,
            "reasoning": self.reasoning,
            "actionPlan": list(self.action_plan),
        }


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPEN_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSE_FENCE.sub("", cleaned)
    return cleaned.strip()


def load_json_object(raw_text: str) -> Dict[str, Any]:
    if not isinstance(raw_text, str):
        raise ParseError("response is not text", str(raw_text))
    try:
        parsed = json.loads(strip_code_fence(raw_text))
    except json.JSONDecodeError as exc:
        raise ParseError(f"invalid JSON ({exc.msg})", raw_text) from exc
    except ValueError as exc:
        # Integer literals past the interpreter's digit limit.
        raise ParseError(f"invalid JSON ({exc})", raw_text) from exc
    if not isinstance(parsed, dict):
        raise ParseError("expected a JSON object", raw_text)
    return parsed


def _optional_text(value: Any) -> Optional[str]:
    return str(value) if value else None


def _string_list(value: Any) -> List[str]:
    return [str(item) for item in value]


def parse_ideas(raw_text: str) -> List[BusinessIdea]:
    parsed = load_json_object(raw_text)
    items = parsed.get("ideas")
    if not isinstance(items, list):
        raise ParseError("missing ideas array", raw_text)

    ideas: List[BusinessIdea] = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ParseError(f"idea {index} is not an object", raw_text)
        missing = [key for key in ("title", "targetMarket", "revenueModel") if not item.get(key)]
        if missing:
            raise ParseError(f"idea {index} is missing {', '.join(missing)}", raw_text)

        features = item.get("keyFeatures")
        ideas.append(
            BusinessIdea(
                title=str(item["title"]),
                target_market=str(item["targetMarket"]),
                revenue_model=str(item["revenueModel"]),
                key_features=_string_list(features) if isinstance(features, list) else [],
                description=str(item.get("description") or ""),
                market_size=_optional_text(item.get("marketSize")),
                competition=_optional_text(item.get("competition")),
            )
        )
    return ideas


def parse_socratic_response(raw_text: str) -> SocraticResponse:
    parsed = load_json_object(raw_text)
    question = parsed.get("question")
    if not question or not isinstance(question, str):
        raise ParseError("missing question", raw_text)

    suggestions = parsed.get("suggestions")
    return SocraticResponse(
        question=question,
        suggestions=_string_list(suggestions) if isinstance(suggestions, list) else None,
        insights=_optional_text(parsed.get("insights")),
    )


def _level(parsed: Dict[str, Any], key: str, allowed: tuple, raw_text: str) -> str:
    value = parsed.get(key)
    if value not in allowed:
        raise ParseError(f"{key} must be one of {', '.join(allowed)}", raw_text)
    return value


def parse_demand_validation(raw_text: str) -> DemandValidation:
    parsed = load_json_object(raw_text)

    is_real = parsed.get("isRealDemand")
    if not isinstance(is_real, bool):
        raise ParseError("isRealDemand must be a boolean", raw_text)
    score = parsed.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)) or score != score:
        raise ParseError("score must be a number", raw_text)
    if not parsed.get("reasoning"):
        raise ParseError("missing reasoning", raw_text)
    action_plan = parsed.get("actionPlan")
    if not isinstance(action_plan, list):
        raise ParseError("actionPlan must be a list", raw_text)

    # Out-of-range scores are clamped rather than rejected. Compare before
    # converting: huge JSON integers do not fit in a float.
    clamped = 100 if score > 100 else 0 if score < 0 else int(round(score))
    return DemandValidation(
        is_real_demand=is_real,
        score=clamped,
        frequency=_level(parsed, "frequency", FREQUENCY_LEVELS, raw_text),
        pain_point=_level(parsed, "painPoint", PAIN_POINT_LEVELS, raw_text),
        payment_willingness=_level(parsed, "paymentWillingness", PAYMENT_LEVELS, raw_text),
        reasoning=str(parsed["reasoning"]),
        action_plan=_string_list(action_plan),
    )

"""Use-case handlers: idea generation, Socratic questioning, demand validation."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar

from .config import use_case_settings
from .llm.catalog import default_model
from .llm.types import ConfigurationError, GenerationError, GenerationRequest, UnsupportedModelError
from .parsers import ParseError, parse_demand_validation, parse_ideas, parse_socratic_response
from .prompts import (
    IDEA_SYSTEM_PROMPT,
    SOCRATIC_SYSTEM_PROMPTS,
    VALIDATION_SYSTEM_PROMPT,
    build_idea_prompt,
    build_socratic_prompt,
    build_validation_prompt,
    format_conversation_history,
)
from .utils import epoch_ms, utc_now_iso
from .validators import validate_demand_request, validate_idea_request, validate_socratic_request

logger = logging.getLogger(__name__)

T = TypeVar("T")


def describe_failure(error: BaseException) -> str:
    """User-facing message for a failed generation."""
    if isinstance(error, (ConfigurationError, UnsupportedModelError)):
        return f"{error} Check the API key configuration or choose another model."
    return "Generation failed, please retry."


def _parse_logged(parser: Callable[[str], T], raw_text: str) -> T:
    try:
        return parser(raw_text)
    except ParseError as exc:
        logger.error("Could not parse model output: %s", exc.reason)
        logger.debug("Raw model output: %s", exc.raw_text)
        raise


def _request(config: Dict[str, Any], use_case: str, prompt: str, system: str, model: Optional[str]) -> GenerationRequest:
    temperature, max_tokens = use_case_settings(config, use_case)
    return GenerationRequest(
        prompt=prompt,
        model=model or default_model(config),
        system_prompt=system,
        temperature=temperature,
        max_tokens=max_tokens,
    )


def generate_ideas(
    router,
    config: Dict[str, Any],
    interests: str,
    generation_type: str,
    model: Optional[str] = None,
) -> Dict[str, Any]:
    validate_idea_request(interests, generation_type, config)
    request = _request(config, "ideas", build_idea_prompt(interests, generation_type), IDEA_SYSTEM_PROMPT, model)
    logger.info("Idea generation: model=%s type=%s", request.model, generation_type)

    text = router.generate_with_retry(request)
    ideas = _parse_logged(parse_ideas, text)
    logger.info("Generated %d ideas", len(ideas))
    return {
        "ideas": [idea.to_dict() for idea in ideas],
        "model": request.model,
        "generatedAt": utc_now_iso(),
    }


def stream_ideas(
    router,
    config: Dict[str, Any],
    interests: str,
    generation_type: str,
    model: Optional[str] = None,
) -> Iterator[Dict[str, Any]]:
    """Events for a streamed idea generation.

    Yields ``{"content": fragment}`` per fragment, then either the parsed
    ideas with ``done`` set or a parse error carrying the raw response.
    Generation failures become a single ``{"error": ...}`` event.
    """
    validate_idea_request(interests, generation_type, config)
    request = _request(config, "ideas", build_idea_prompt(interests, generation_type), IDEA_SYSTEM_PROMPT, model)
    logger.info("Streaming idea generation: model=%s type=%s", request.model, generation_type)

    chunks: List[str] = []
    try:
        fragments = router.generate_stream(request)
        try:
            for fragment in fragments:
                chunks.append(fragment)
                yield {"content": fragment}
        finally:
            fragments.close()
    except GenerationError as exc:
        logger.error("Streaming generation failed: %s", exc)
        yield {"error": describe_failure(exc)}
        return

    full_text = "".join(chunks)
    try:
        ideas = _parse_logged(parse_ideas, full_text)
    except ParseError:
        yield {"error": "Failed to parse the model response", "rawResponse": full_text}
        return
    yield {"ideas": [idea.to_dict() for idea in ideas], "done": True}


def ask_socratic_question(
    router,
    config: Dict[str, Any],
    mode: str,
    topic: str,
    history: List[Dict[str, Any]],
    model: Optional[str] = None,
) -> Dict[str, Any]:
    validate_socratic_request(mode, topic, history, config)
    prompt = build_socratic_prompt(mode, topic, format_conversation_history(history))
    request = _request(config, "socratic", prompt, SOCRATIC_SYSTEM_PROMPTS[mode], model)
    logger.info("Socratic question: mode=%s model=%s", mode, request.model)

    text = router.generate_with_retry(request)
    response = _parse_logged(parse_socratic_response, text)
    return {**response.to_dict(), "model": request.model, "timestamp": epoch_ms()}


def validate_demand(
    router,
    config: Dict[str, Any],
    demand: str,
    model: Optional[str] = None,
) -> Dict[str, Any]:
    validate_demand_request(demand, config)
    request = _request(config, "validation", build_validation_prompt(demand), VALIDATION_SYSTEM_PROMPT, model)
    logger.info("Demand validation: model=%s demand=%r", request.model, demand[:50])

    text = router.generate_with_retry(request)
    validation = _parse_logged(parse_demand_validation, text)
    logger.info("Validation done: score=%d real=%s", validation.score, validation.is_real_demand)
    return validation.to_dict()

import json

import pytest
from conftest import FakeTransport, openai_envelope, openai_events

from idea_forge.config import load_settings
from idea_forge.llm.registry import ProviderRegistry
from idea_forge.llm.router import LLMRouter
from idea_forge.llm.types import ConfigurationError, TransportError
from idea_forge.parsers import ParseError
from idea_forge.use_cases import (
    ask_socratic_question,
    describe_failure,
    generate_ideas,
    stream_ideas,
    validate_demand,
)
from idea_forge.validators import RequestValidationError

IDEAS_JSON = json.dumps(
    {"ideas": [{"title": "Meal kits", "targetMarket": "students", "revenueModel": "subscription"}]}
)


@pytest.fixture
def config(tmp_path):
    return load_settings(str(tmp_path / "missing.yaml"), environ={})


def test_generate_ideas_returns_parsed_ideas(make_router, config):
    transport = FakeTransport(replies=[openai_envelope("```json\n" + IDEAS_JSON + "\n```")])
    router = make_router(transport, config)

    result = generate_ideas(router, config, "cooking, budgeting", "niche")

    assert result["model"] == "deepseek-chat"
    assert result["ideas"][0]["title"] == "Meal kits"
    assert result["generatedAt"].endswith("Z")
    payload = transport.calls[0].payload
    assert payload["temperature"] == 0.8
    assert payload["max_tokens"] == 3000
    assert payload["messages"][0]["role"] == "system"
    assert "cooking, budgeting" in payload["messages"][1]["content"]


def test_generate_ideas_validates_before_calling_the_model(make_router, config):
    transport = FakeTransport(replies=[openai_envelope(IDEAS_JSON)])
    router = make_router(transport, config)

    with pytest.raises(RequestValidationError) as exc_info:
        generate_ideas(router, config, "x" * 501, "weekly")

    fields = [detail["field"] for detail in exc_info.value.details]
    assert fields == ["interests", "generationType"]
    assert transport.calls == []


def test_generate_ideas_surfaces_parse_errors(make_router, config):
    router = make_router(FakeTransport(replies=[openai_envelope("Sorry, I cannot help.")]), config)
    with pytest.raises(ParseError):
        generate_ideas(router, config, "travel", "random")


def test_stream_ideas_emits_fragments_then_ideas(make_router, config):
    half = len(IDEAS_JSON) // 2
    transport = FakeTransport(events=openai_events(IDEAS_JSON[:half], IDEAS_JSON[half:]))
    router = make_router(transport, config)

    events = list(stream_ideas(router, config, "travel", "trending", model="qwen-plus"))

    assert events[0] == {"content": IDEAS_JSON[:half]}
    assert events[1] == {"content": IDEAS_JSON[half:]}
    assert events[2]["done"] is True
    assert events[2]["ideas"][0]["revenueModel"] == "subscription"
    assert transport.stream_calls[0].provider == "qwen"
    assert transport.closed == 1


def test_stream_ideas_reports_unparseable_output(make_router, config):
    router = make_router(FakeTransport(events=openai_events("not ", "json")), config)

    events = list(stream_ideas(router, config, "travel", "trending"))

    assert events[-1] == {"error": "Failed to parse the model response", "rawResponse": "not json"}


def test_stream_ideas_reports_missing_credentials(config):
    router = LLMRouter(config=config, registry=ProviderRegistry(environ={}), transport=FakeTransport())

    events = list(stream_ideas(router, config, "travel", "trending"))

    assert len(events) == 1
    assert "DEEPSEEK_API_KEY" in events[0]["error"]
    assert events[0]["error"].endswith("Check the API key configuration or choose another model.")


def test_stream_ideas_reports_mid_stream_failure(make_router, config):
    events_in = openai_events("{") + [TransportError("connection reset")]
    router = make_router(FakeTransport(events=events_in), config)

    events = list(stream_ideas(router, config, "travel", "trending"))

    assert events == [{"content": "{"}, {"error": "Generation failed, please retry."}]


def test_ask_socratic_question_uses_socratic_settings(make_router, config):
    reply = json.dumps({"question": "Who would pay for this?", "suggestions": ["Parents"]})
    transport = FakeTransport(replies=[openai_envelope(reply)])
    router = make_router(transport, config)
    history = [
        {"role": "user", "content": "I like kids' education"},
        {"role": "assistant", "content": "What age group?"},
    ]

    result = ask_socratic_question(router, config, "brainstorm", "edtech", history, model="gpt-4-turbo")

    assert result["question"] == "Who would pay for this?"
    assert result["suggestions"] == ["Parents"]
    assert result["model"] == "gpt-4-turbo"
    assert isinstance(result["timestamp"], int)
    call = transport.calls[0]
    assert call.payload["temperature"] == 0.7
    assert call.payload["max_tokens"] == 800
    assert "AI: What age group?" in call.payload["messages"][1]["content"]


def test_ask_socratic_question_rejects_bad_history(make_router, config):
    router = make_router(FakeTransport(replies=[openai_envelope("{}")]), config)
    with pytest.raises(RequestValidationError) as exc_info:
        ask_socratic_question(router, config, "refine", "edtech", [{"role": "system", "content": "x"}])
    assert exc_info.value.details[0]["field"] == "history.0"


def test_validate_demand_clamps_score(make_router, config):
    reply = json.dumps(
        {
            "isRealDemand": True,
            "score": 150,
            "frequency": "high",
            "painPoint": "strong",
            "paymentWillingness": "high",
            "reasoning": "Daily pain with budget attached.",
            "actionPlan": ["talk to 20 clinics"],
        }
    )
    transport = FakeTransport(replies=[openai_envelope(reply)])
    router = make_router(transport, config)

    result = validate_demand(router, config, "Clinics need appointment reminders")

    assert result["score"] == 100
    assert result["isRealDemand"] is True
    assert transport.calls[0].payload["temperature"] == 0.3


def test_validate_demand_rejects_empty_input(make_router, config):
    with pytest.raises(RequestValidationError):
        validate_demand(make_router(FakeTransport(), config), config, "   ")


def test_describe_failure_messages():
    config_error = ConfigurationError("API key for gpt-4 is not configured.")
    assert describe_failure(config_error) == (
        "API key for gpt-4 is not configured. Check the API key configuration or choose another model."
    )
    assert describe_failure(TransportError("boom")) == "Generation failed, please retry."

import json

import pytest
from conftest import FakeTransport, openai_envelope, openai_events

from idea_forge import main as cli
from idea_forge.llm.router import LLMRouter


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-cli-secret")
    monkeypatch.delenv("DEFAULT_MODEL", raising=False)
    return str(tmp_path / "settings.yaml")


@pytest.fixture
def fake_transport(monkeypatch):
    transport = FakeTransport()

    def _router(config=None, registry=None):
        return LLMRouter(config=config, registry=registry, transport=transport, sleep=lambda _delay: None)

    monkeypatch.setattr(cli, "LLMRouter", _router)
    return transport


def test_models_lists_catalog(settings_path, capsys):
    assert cli.main(["--settings", settings_path, "models"]) == 0

    listing = json.loads(capsys.readouterr().out)
    assert listing["defaultModel"] == "deepseek-chat"
    deepseek = next(m for m in listing["models"] if m["value"] == "deepseek-chat")
    assert deepseek["available"] is True


def test_generate_prints_text(settings_path, fake_transport, capsys):
    fake_transport.replies.append(openai_envelope("hello world"))

    assert cli.main(["--settings", settings_path, "generate", "Say hello"]) == 0

    assert capsys.readouterr().out.strip() == "hello world"
    assert fake_transport.calls[0].payload["messages"] == [{"role": "user", "content": "Say hello"}]


def test_generate_stream_writes_fragments(settings_path, fake_transport, capsys):
    fake_transport.events.extend(openai_events("hel", "lo"))

    assert cli.main(["--settings", settings_path, "generate", "hi", "--stream"]) == 0

    assert capsys.readouterr().out == "hello\n"


def test_invalid_request_exits_with_2(settings_path, fake_transport, capsys):
    assert cli.main(["--settings", settings_path, "validate", " "]) == 2

    output = json.loads(capsys.readouterr().out)
    assert output["error"] == "Invalid request parameters"
    assert fake_transport.calls == []


def test_unsupported_model_exits_with_1(settings_path, fake_transport, capsys):
    assert cli.main(["--settings", settings_path, "generate", "hi", "--model", "llama-3"]) == 1

    output = json.loads(capsys.readouterr().out)
    assert output["error"].startswith("Unsupported model: 'llama-3'")


def test_zero_max_tokens_is_rejected(settings_path, fake_transport, capsys):
    assert cli.main(["--settings", settings_path, "generate", "hi", "--max-tokens", "0"]) == 2

    output = json.loads(capsys.readouterr().out)
    assert "max_tokens" in output["error"]
    assert fake_transport.calls == []

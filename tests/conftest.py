import pytest

from idea_forge.llm.registry import ProviderRegistry
from idea_forge.llm.router import LLMRouter

TEST_ENV = {
    "DEEPSEEK_API_KEY": "sk-deepseek-secret",
    "DASHSCOPE_API_KEY": "sk-dashscope-secret",
    "OPENAI_API_KEY": "sk-openai-secret",
    "ANTHROPIC_API_KEY": "sk-ant-secret",
    "GOOGLE_API_KEY": "google-secret",
    "GROQ_API_KEY": "gsk-groq-secret",
}


class FakeTransport:
    """Records calls; replies with queued envelopes/exceptions and stream events."""

    def __init__(self, replies=None, events=None):
        self.replies = list(replies or [])
        self.events = list(events or [])
        self.calls = []
        self.stream_calls = []
        self.delivered = 0
        self.closed = 0

    def post(self, call):
        self.calls.append(call)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def stream(self, call):
        self.stream_calls.append(call)
        try:
            for event in self.events:
                if isinstance(event, BaseException):
                    raise event
                self.delivered += 1
                yield event
        finally:
            self.closed += 1


def openai_envelope(text):
    return {"id": "chatcmpl-1", "choices": [{"index": 0, "message": {"role": "assistant", "content": text}}]}


def openai_events(*fragments):
    return [{"choices": [{"index": 0, "delta": {"content": f}}]} for f in fragments]


@pytest.fixture
def registry():
    return ProviderRegistry(environ=TEST_ENV)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_router(registry, sleeps):
    def _make(transport, config=None):
        return LLMRouter(config=config, registry=registry, transport=transport, sleep=sleeps.append)

    return _make

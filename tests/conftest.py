import pytest

from chatrelay.models.chat_models import Session
from chatrelay.models.chat_models import Turn
from chatrelay.services.session_store import SessionStore


class ScriptedCall:
    """Async tier call that plays back a script of results and exceptions.

    Each entry is returned as the raw envelope, or raised when it is an
    exception. Every call records the messages it received.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls: list[list[dict[str, str]]] = []

    async def __call__(self, messages):
        self.calls.append([dict(m) for m in messages])
        outcome = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def output_items(*texts: str) -> dict:
    """A Responses API style envelope with one text part per output item."""
    return {"output": [{"type": "message", "content": [{"type": "output_text", "text": t}]} for t in texts]}


def chat_envelope(content: str | None) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def make_session():
    def _make_session(*turns: tuple[str, str], session_id: str = "session-test") -> Session:
        return Session(id=session_id, messages=[Turn(role=r, content=c) for r, c in turns])

    return _make_session


@pytest.fixture
def scripted_call():
    return ScriptedCall


@pytest.fixture
def envelopes():
    class _Envelopes:
        output = staticmethod(output_items)
        chat = staticmethod(chat_envelope)

    return _Envelopes

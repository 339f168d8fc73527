import pytest
from fastapi import FastAPI
from fastapi import status
from fastapi.testclient import TestClient

from chatrelay.api.dependencies import get_orchestrator
from chatrelay.api.dependencies import get_session_store
from chatrelay.core.config import settings
from chatrelay.main import SPAStaticFiles
from chatrelay.main import app
from chatrelay.services.fallback import FallbackOrchestrator
from chatrelay.services.fallback import Tier
from chatrelay.services.llm import LLMError

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tiers(scripted_call, envelopes):
    primary = scripted_call(envelopes.output("// file: app.py\nprint('generated')"))
    secondary = scripted_call(envelopes.chat("fallback answer"))
    return primary, secondary


@pytest.fixture
def client(store, tiers):
    primary, secondary = tiers
    orchestrator = FallbackOrchestrator(
        (
            Tier(name="primary", model="primary-model", attempts=2, call=primary),
            Tier(name="secondary", model="secondary-model", attempts=1, call=secondary, sentinel="[empty]"),
        ),
        retry_wait=0,
    )
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# /api/chat
# ---------------------------------------------------------------------------


def test_chat_mints_session_and_answers(client):
    resp = client.post("/api/chat", json={"message": "hello"})

    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert body["sessionId"]
    assert body["assistantText"] == "// file: app.py\nprint('generated')"
    assert body["modelUsed"] == "primary-model"
    assert body["fromFallback"] is False


def test_chat_reuses_session_history(client, store, tiers):
    primary, _ = tiers
    first = client.post("/api/chat", json={"message": "hello"}).json()
    second = client.post("/api/chat", json={"sessionId": first["sessionId"], "message": "again"}).json()

    assert second["sessionId"] == first["sessionId"]
    session = store.get(first["sessionId"])
    assert len(session.messages) == 4
    assert [t.role.value for t in session.messages] == ["user", "assistant", "user", "assistant"]

    # The second call saw the whole first exchange plus the new question
    sent = primary.calls[-1]
    assert [m["content"] for m in sent[1:]] == ["hello", first["assistantText"], "again"]


def test_chat_adopts_unknown_session_id(client, store):
    resp = client.post("/api/chat", json={"sessionId": "my-own-id", "message": "hello"})

    assert resp.json()["sessionId"] == "my-own-id"
    assert len(store.get("my-own-id").messages) == 2


def test_chat_reports_fallback(client, tiers):
    primary, _ = tiers
    primary.script[:] = [LLMError("primary down")]

    body = client.post("/api/chat", json={"message": "hello"}).json()

    assert body["fromFallback"] is True
    assert body["modelUsed"] == "secondary-model"
    assert body["assistantText"] == "fallback answer"


@pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": 123}, {"message": None}])
def test_chat_rejects_missing_or_non_text_message(client, store, payload):
    resp = client.post("/api/chat", json=payload)

    assert resp.status_code == 422
    assert resp.json()["error"] == "Input validation failed"
    assert len(store) == 0


def test_chat_returns_server_fault_when_all_tiers_fail(client, store, tiers):
    primary, secondary = tiers
    primary.script[:] = [LLMError("primary down")]
    secondary.script[:] = [LLMError("secondary down")]

    resp = client.post("/api/chat", json={"sessionId": "s1", "message": "hello"})

    assert resp.status_code == 500
    assert "primary down" in resp.json()["error"]
    # The user turn stays; no assistant turn was added
    assert [t.role.value for t in store.get("s1").messages] == ["user"]


# ---------------------------------------------------------------------------
# /api/upload
# ---------------------------------------------------------------------------


def test_upload_without_content_uses_describe_only(client, store, tiers):
    primary, _ = tiers
    resp = client.post("/api/upload", json={"fileName": "x.zip"})

    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert body["assistantText"]

    user_turn = store.get(body["sessionId"]).messages[0].content
    assert "File name: x.zip" in user_turn
    assert "raw contents are not available" in user_turn
    assert "--- BEGIN TRUNCATED CONTENT" not in user_turn
    assert primary.calls[0][-1]["content"] == user_turn


def test_upload_with_text_embeds_file(client, store):
    source = "def add(a, b):\n    return a + b\n"
    resp = client.post(
        "/api/upload",
        json={
            "fileName": "calc.py",
            "fileType": "text/x-python",
            "fileSize": 2048,
            "fileContent": source,
            "instructions": "Add type hints",
        },
    )

    assert resp.status_code == status.HTTP_200_OK
    user_turn = store.get(resp.json()["sessionId"]).messages[0].content
    assert source in user_turn
    assert "Size: 2.0 KB" in user_turn
    assert "Add type hints" in user_turn


def test_upload_joins_existing_session(client, store):
    session_id = client.post("/api/chat", json={"message": "hello"}).json()["sessionId"]

    client.post("/api/upload", json={"sessionId": session_id, "fileName": "a.txt", "fileContent": "abc"})

    assert len(store.get(session_id).messages) == 4


@pytest.mark.parametrize("payload", [{}, {"fileName": ""}, {"fileContent": "abc"}])
def test_upload_requires_file_name(client, payload):
    resp = client.post("/api/upload", json=payload)
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Boundary plumbing
# ---------------------------------------------------------------------------


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_oversized_body_is_rejected(client, monkeypatch):
    monkeypatch.setattr(settings, "max_request_bytes", 32)

    resp = client.post("/api/chat", json={"message": "x" * 100})

    assert resp.status_code == 413


def test_frontend_serves_index_for_unknown_paths(tmp_path):
    (tmp_path / "index.html").write_text("<html>relay</html>")
    (tmp_path / "app.js").write_text("console.log('ok')")
    frontend = FastAPI()
    frontend.mount("/", SPAStaticFiles(directory=tmp_path, html=True), name="static")
    client = TestClient(frontend)

    assert client.get("/app.js").text == "console.log('ok')"
    deep = client.get("/sessions/abc/history")
    assert deep.status_code == 200
    assert deep.text == "<html>relay</html>"
    assert client.get("/").text == "<html>relay</html>"


def test_frontend_keeps_404_for_unknown_api_paths(tmp_path):
    (tmp_path / "index.html").write_text("<html>relay</html>")
    frontend = FastAPI()
    frontend.mount("/", SPAStaticFiles(directory=tmp_path, html=True), name="static")
    client = TestClient(frontend)

    assert client.get("/api/nope").status_code == 404

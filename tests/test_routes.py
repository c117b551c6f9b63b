import base64
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from aippt.main import app
from aippt.services.artifacts import SessionArtifacts
from aippt.services.gateway import ModelGateway

from conftest import Recorder

TEXT_CFG = {"baseUrl": "https://llm.example.com/v1", "apiKey": "tk", "model": "gpt-4o"}
IMAGE_CFG = {"baseUrl": "https://img.example.com/v1", "apiKey": "ik", "model": "img-1"}
PAGE = {"title": "Intro", "keyPoints": ["a", "b", "c"], "content": "Hello", "emphasis": "a", "layoutSuggestion": "centered"}


class Backend:
    """Fake provider backend: text replies and image results are swappable per test."""

    def __init__(self):
        self.text_reply = json.dumps([PAGE, PAGE])
        self.text_status = 200
        self.images = [{"b64_json": base64.b64encode(b"png").decode()}]
        self.rec = Recorder(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "llm.example.com":
            if self.text_status != 200:
                return httpx.Response(self.text_status, text="upstream says no")
            return httpx.Response(200, json={"choices": [{"message": {"content": self.text_reply}}]})
        if request.url.host == "img.example.com":
            return httpx.Response(200, json={"data": self.images})
        return httpx.Response(404)

    def text_messages(self):
        return [b["messages"] for r, b in zip(self.rec.requests, self.rec.bodies()) if r.url.host == "llm.example.com"]


@pytest.fixture
def backend(monkeypatch, generated, sleeps):
    be = Backend()
    monkeypatch.setattr(app.state, "gateway", ModelGateway(transport=be.rec.transport, sleep=sleeps))
    monkeypatch.setattr(app.state, "artifacts", SessionArtifacts())
    return be


@pytest.fixture
def client(backend):
    return TestClient(app)


# ---------------- split ----------------

def test_split_ok(client, backend):
    r = client.post("/api/ai/split", json={"text": "material", "pageCount": 2, "textModelConfig": TEXT_CFG})
    assert r.status_code == 200
    pages = r.json()["pages"]
    assert len(pages) == 2
    assert pages[0]["keyPoints"] == ["a", "b", "c"]
    assert pages[0]["layoutSuggestion"] == "centered"


@pytest.mark.parametrize("payload", [
    {"pageCount": 2, "textModelConfig": TEXT_CFG},
    {"text": "material", "textModelConfig": TEXT_CFG},
    {"text": "material", "pageCount": 2},
    {"text": "material", "pageCount": 2, "textModelConfig": {**TEXT_CFG, "model": ""}},
])
def test_split_missing_fields_is_400(client, backend, payload):
    r = client.post("/api/ai/split", json=payload)
    assert r.status_code == 400
    assert r.json()["error"]
    assert backend.rec.requests == []


def test_split_malformed_body_is_400(client):
    r = client.post("/api/ai/split", json={"text": "m", "pageCount": "lots", "textModelConfig": TEXT_CFG})
    assert r.status_code == 400
    assert r.json()["errors"]


def test_split_provider_error_surfaces_status_and_url(client, backend):
    backend.text_status = 401
    r = client.post("/api/ai/split", json={"text": "m", "pageCount": 2, "textModelConfig": TEXT_CFG})
    assert r.status_code == 502
    body = r.json()
    assert "API error (401)" in body["error"]
    assert "https://llm.example.com/v1/chat/completions" in body["error"]
    assert body["problem"]["code"] == "E_PROVIDER_HTTP"


def test_split_unparseable_is_problem(client, backend):
    backend.text_reply = "no json here"
    r = client.post("/api/ai/split", json={"text": "m", "pageCount": 2, "textModelConfig": TEXT_CFG})
    assert r.status_code == 502
    assert r.json()["problem"]["code"] == "E_PARSE"


# ---------------- generate / regenerate ----------------

def test_generate_page_with_image_model(client, backend, generated):
    r = client.post("/api/ai/generate-page", json={
        "pageData": PAGE, "pageIndex": 0, "totalPages": 3,
        "imageModelConfig": IMAGE_CFG, "textModelConfig": TEXT_CFG, "sessionId": "abc",
    })
    assert r.status_code == 200
    body = r.json()
    assert body == {"imageUrl": "/generated/page_abc_0.png", "method": "image_model", "sessionId": "abc"}
    assert (generated / "page_abc_0.png").read_bytes() == b"png"


def test_generate_page_without_session_gets_one(client, backend):
    r = client.post("/api/ai/generate-page", json={"pageData": PAGE, "textModelConfig": TEXT_CFG})
    assert r.status_code == 200
    body = r.json()
    assert body["method"] == "html_generation"
    assert body["htmlContent"]
    assert body["sessionId"].isdigit()


def test_generate_page_requires_page_and_a_model(client, backend):
    assert client.post("/api/ai/generate-page", json={"textModelConfig": TEXT_CFG}).status_code == 400
    r = client.post("/api/ai/generate-page", json={"pageData": PAGE, "imageModelConfig": {"baseUrl": "x", "apiKey": ""}})
    assert r.status_code == 400
    assert backend.rec.requests == []


def test_regenerate_appends_custom_prompt(client, backend):
    backend.text_reply = "<html>again</html>"
    r = client.post("/api/ai/regenerate-page", json={
        "pageData": PAGE, "pageIndex": 1, "totalPages": 3, "sessionId": "s9",
        "textModelConfig": TEXT_CFG, "customPrompt": "more charts please",
    })
    assert r.status_code == 200
    assert r.json()["htmlContent"] == "<html>again</html>"
    user_msg = backend.text_messages()[-1][1]["content"]
    assert "Hello\n\nAdditional user request: more charts please" in user_msg


def test_session_artifacts_track_latest_and_reset(client, backend):
    base = {"pageData": PAGE, "totalPages": 2, "sessionId": "sess", "textModelConfig": TEXT_CFG}
    backend.text_reply = "<html>p0</html>"
    client.post("/api/ai/generate-page", json={**base, "pageIndex": 0})
    client.post("/api/ai/generate-page", json={**base, "pageIndex": 1})
    backend.text_reply = "<html>p1 v2</html>"
    client.post("/api/ai/regenerate-page", json={**base, "pageIndex": 1})

    listing = client.get("/api/ai/sessions/sess/artifacts").json()
    assert set(listing["artifacts"]) == {"0", "1"}
    assert listing["artifacts"]["1"]["htmlContent"] == "<html>p1 v2</html>"

    assert client.delete("/api/ai/sessions/sess/artifacts").json() == {"sessionId": "sess", "removed": 2}
    assert client.get("/api/ai/sessions/sess/artifacts").json()["artifacts"] == {}


# ---------------- misc ----------------

def test_templates(client):
    r = client.get("/api/ai/templates")
    assert r.status_code == 200
    ids = [t["id"] for t in r.json()["templates"]]
    assert ids == ["business", "education", "creative", "minimal", "tech"]
    assert "fontFamily" in r.json()["templates"][0]


def test_config_and_health(client):
    cfg = client.get("/api/config").json()
    assert set(cfg) == {"textModel", "imageModel"}
    assert set(cfg["textModel"]) == {"baseUrl", "apiKey", "model"}

    health = client.get("/api/health").json()
    assert health["status"] == "ok"
    assert health["timestamp"]


# ---------------- failure shapes ----------------

def test_unexpected_error_is_json_500(backend, monkeypatch):
    from aippt.api.routes import ai

    async def broken_split(*a, **kw):
        raise OSError("disk full")

    monkeypatch.setattr(ai, "split_content", broken_split)
    client = TestClient(app, raise_server_exceptions=False)
    r = client.post("/api/ai/split", json={"text": "m", "pageCount": 2, "textModelConfig": TEXT_CFG})
    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"error": "disk full"}


def test_odd_page_shapes_do_not_crash_split(client, backend):
    backend.text_reply = json.dumps([{"title": "Cover", "keyPoints": 5}])
    r = client.post("/api/ai/split", json={"text": "m", "pageCount": 1, "textModelConfig": TEXT_CFG})
    assert r.status_code == 200
    assert r.json()["pages"][0]["keyPoints"] == ["5"]


def test_oversized_body_is_413(client, backend, monkeypatch):
    from aippt.core.config import settings

    monkeypatch.setattr(settings, "MAX_BODY_MB", 0.001)
    r = client.post("/api/ai/split", json={"text": "x" * 5000, "pageCount": 2, "textModelConfig": TEXT_CFG})
    assert r.status_code == 413
    assert "exceeds" in r.json()["error"]
    assert backend.rec.requests == []


def test_public_base_url_makes_artifact_urls_absolute(client, backend, monkeypatch):
    from aippt.core.config import settings

    monkeypatch.setattr(settings, "PUBLIC_BASE_URL", "https://decks.example.com/")
    r = client.post("/api/ai/generate-page", json={
        "pageData": PAGE, "imageModelConfig": IMAGE_CFG, "sessionId": "abs",
    })
    assert r.json()["imageUrl"] == "https://decks.example.com/generated/page_abs_0.png"

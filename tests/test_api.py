"""
Test: HTTP API — session header, status codes, response envelopes.
The session store is overridden with stub-backed controllers.
"""
import io

import pytest
from PIL import Image
from fastapi.testclient import TestClient

from conftest import REPORT_PAYLOAD, StubProvider
from essay_tutor.api.deps import SESSION_HEADER, get_session_store
from essay_tutor.core.config import Settings
from essay_tutor.core.errors import AuthError, TransportError
from essay_tutor.main import app
from essay_tutor.services.sessions import SessionStore, controller_factory


def _client(provider):
    store = SessionStore(controller_factory(provider, Settings(SUGGESTION_PROVIDER="static")))
    app.dependency_overrides[get_session_store] = lambda: store
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()


def _submit(client, headers=None, **form):
    data = {"topic": "宋代山水画", "answer_text": "北宋山水以全景式构图为主。", "persona": "professor"}
    data.update(form)
    return client.post("/api/v1/tutor/submit", data=data, headers=headers or {})


def test_health_check():
    client = TestClient(app)
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "operational"


def test_submit_text_answer():
    client = _client(StubProvider([REPORT_PAYLOAD]))
    resp = _submit(client)

    assert resp.status_code == 200
    body = resp.json()
    assert body["sessionId"] == resp.headers[SESSION_HEADER]
    state = body["state"]
    assert state["view"] == "reporting"
    assert state["loading"] is False
    assert state["report"]["overallScore"] == 22
    assert "handwritingEvaluation" not in state["report"]
    assert len(state["suggestions"]) == 3


def test_submit_photo_answer(jpeg_bytes):
    payload = dict(REPORT_PAYLOAD, handwritingEvaluation={
        "legibility": "清晰", "estimatedWordCount": 600, "timeManagementAdvice": "注意时间",
    })
    provider = StubProvider([payload])
    client = _client(provider)

    resp = client.post(
        "/api/v1/tutor/submit",
        data={"topic": "宋代山水画", "persona": "senior"},
        files={"image": ("answer.jpg", jpeg_bytes, "image/jpeg")},
    )

    assert resp.status_code == 200
    assert resp.json()["state"]["report"]["handwritingEvaluation"]["estimatedWordCount"] == 600
    assert provider.calls[0]["image"] == jpeg_bytes


def test_session_is_reused_through_header():
    client = _client(StubProvider([REPORT_PAYLOAD]))
    session_id = _submit(client).headers[SESSION_HEADER]

    resp = client.get("/api/v1/tutor/report", headers={SESSION_HEADER: session_id})

    assert resp.status_code == 200
    body = resp.json()
    assert body["report"]["summary"] == REPORT_PAYLOAD["summary"]
    assert body["scoreBand"] == "fair"
    assert body["modelEssayType"] == "short_answer"


def test_validation_error_is_400_without_ai_call():
    provider = StubProvider([REPORT_PAYLOAD])
    client = _client(provider)

    resp = _submit(client, topic="")

    assert resp.status_code == 400
    assert resp.json() == {"status": "error", "message": "请输入题目", "detail": None}
    assert provider.calls == []
    assert SESSION_HEADER in resp.headers


def test_missing_answer_is_400():
    client = _client(StubProvider([REPORT_PAYLOAD]))
    resp = _submit(client, answer_text="")
    assert resp.status_code == 400
    assert resp.json()["message"] == "请输入答案或上传图片"


def test_bad_image_is_400():
    client = _client(StubProvider([REPORT_PAYLOAD]))
    resp = client.post(
        "/api/v1/tutor/submit",
        data={"topic": "宋代山水画"},
        files={"image": ("answer.jpg", b"not an image", "image/jpeg")},
    )
    assert resp.status_code == 400


def test_grading_failure_is_502_and_state_stays_submitting():
    client = _client(StubProvider(error=TransportError("upstream 500")))
    resp = _submit(client)

    assert resp.status_code == 502
    assert resp.json()["message"] == "批改过程中出现问题，请稍后重试"

    state = client.get(
        "/api/v1/tutor/session", headers={SESSION_HEADER: resp.headers[SESSION_HEADER]}
    ).json()["state"]
    assert state["view"] == "submitting"
    assert state["loading"] is False
    assert "report" not in state
    assert state["notice"]["level"] == "error"


def test_auth_failure_is_503():
    client = _client(StubProvider(error=AuthError("Google API Key missing")))
    resp = _submit(client)
    assert resp.status_code == 503
    assert resp.json()["detail"] == "Google API Key missing"


def test_schema_failure_is_502():
    client = _client(StubProvider(["{}"]))
    assert _submit(client).status_code == 502


def test_report_unavailable_before_grading():
    client = _client(StubProvider([REPORT_PAYLOAD]))
    assert client.get("/api/v1/tutor/report").status_code == 404
    assert client.post("/api/v1/tutor/navigate", json={"view": "reporting"}).status_code == 409


def test_navigate_to_practice():
    client = _client(StubProvider([REPORT_PAYLOAD]))
    resp = client.post("/api/v1/tutor/navigate", json={"view": "practicing"})
    assert resp.status_code == 200
    assert resp.json()["state"]["view"] == "practicing"


def test_practice_placeholder_then_suggestions():
    client = _client(StubProvider([REPORT_PAYLOAD]))
    placeholder = client.get("/api/v1/tutor/practice").json()["questions"]
    assert placeholder[0]["topic"] == "系统提示"

    session_id = _submit(client).headers[SESSION_HEADER]
    questions = client.get("/api/v1/tutor/practice", headers={SESSION_HEADER: session_id}).json()["questions"]
    assert [q["type"] for q in questions] == ["noun_explanation", "short_answer", "essay"]


def test_mindmap_success():
    client = _client(StubProvider([{"label": "元代文人画", "children": [{"label": "定义"}]}]))
    resp = client.post("/api/v1/tutor/mindmap", json={"topic": "元代文人画"})
    assert resp.status_code == 200
    assert resp.json()["mindMap"] == {"label": "元代文人画", "children": [{"label": "定义", "children": []}]}


def test_mindmap_failure_is_null_not_error():
    client = _client(StubProvider(["{not json"]))
    resp = client.post("/api/v1/tutor/mindmap", json={"topic": "元代文人画"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "success", "mindMap": None}


def test_mindmap_empty_topic_is_400():
    client = _client(StubProvider([{}]))
    assert client.post("/api/v1/tutor/mindmap", json={"topic": " "}).status_code == 400


def test_oversized_dimensions_are_400_not_500(monkeypatch):
    buffer = io.BytesIO()
    Image.new("1", (300, 300)).save(buffer, format="PNG")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    client = _client(StubProvider([REPORT_PAYLOAD]))

    resp = client.post(
        "/api/v1/tutor/submit",
        data={"topic": "宋代山水画"},
        files={"image": ("answer.png", buffer.getvalue(), "image/png")},
    )

    assert resp.status_code == 400
    assert "dimensions too large" in resp.json()["message"]

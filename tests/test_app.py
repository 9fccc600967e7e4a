"""Tests for application wiring: health, body limits, CORS and docs."""

from fastapi.testclient import TestClient

from cvbot.core.config import settings


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "OK", "message": "CVBot Backend Server is running"}


def test_unknown_route_uses_error_envelope(client: TestClient):
    response = client.get("/api/nope")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "http_404"


def test_oversized_json_body_rejected(client: TestClient, fake_llm, monkeypatch):
    monkeypatch.setattr(settings.app, "max_json_body_mb", 1)
    payload = {"resumeText": "x" * (1024 * 1024 + 10)}

    response = client.post("/api/parse-resume-llm", json=payload)

    assert response.status_code == 413
    assert response.json()["error"] == "Request body too large"
    assert "X-Request-ID" in response.headers
    assert fake_llm.calls == []


def test_oversized_chunked_json_body_rejected(client: TestClient, fake_llm, monkeypatch):
    monkeypatch.setattr(settings.app, "max_json_body_mb", 1)

    def body():
        yield b'{"resumeText": "'
        for _ in range(3):
            yield b"x" * (1024 * 1024)
        yield b'"}'

    response = client.post(
        "/api/parse-resume-llm",
        content=body(),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 413
    assert response.json()["code"] == "payload_too_large"
    assert fake_llm.calls == []


def test_chunked_json_body_within_limit_reaches_route(client: TestClient, fake_llm):
    def body():
        yield b'{"resumeText": '
        yield b'"Jane Doe", "endpoint": "jane"}'

    response = client.post(
        "/api/parse-resume-llm",
        content=body(),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["metadata"]["endpoint"] == "jane"
    assert len(fake_llm.calls) == 1


def test_cors_preflight(client: TestClient):
    response = client.options(
        "/api/parse-resume-llm",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers


def test_openapi_tags(client: TestClient):
    schema = client.get("/openapi.json").json()

    tag_names = {tag["name"] for tag in schema["tags"]}
    assert {"Files", "Parsing", "Profile", "Health"} <= tag_names
    assert "/api/upload/cv" in schema["paths"]
    assert "securitySchemes" not in schema.get("components", {})


def test_default_app_uses_local_store():
    from cvbot.adapters.storage.local import LocalUploadStore
    from cvbot.main import app

    assert isinstance(app.state.file_service.store, LocalUploadStore)
    assert TestClient(app).get("/health").status_code == 200

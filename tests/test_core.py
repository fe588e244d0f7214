from __future__ import annotations
import json
import logging

from blueprints.core.routes import JSONFormatter


def test_health_ok(client):
    rv = client.get("/health")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["success"] is True
    assert data["status"] == "ok"
    assert data["ts"].endswith("Z")


def test_unknown_route_is_json_404(client):
    rv = client.get("/api/nope")
    assert rv.status_code == 404
    assert rv.get_json() == {"success": False, "message": "Resource not found."}


def test_wrong_method_is_json(client):
    rv = client.patch("/api/auth/login", json={})
    assert rv.status_code == 405
    assert rv.get_json()["success"] is False


def test_empty_body_is_validation_error(client):
    rv = client.post("/api/auth/login", data="not json", content_type="text/plain")
    assert rv.status_code == 400
    assert rv.get_json()["message"] == "Missing required field: userId."


def test_unhandled_error_is_generic_500(make_app):
    app = make_app()

    def boom():
        raise RuntimeError("secret internals")

    app.add_url_rule("/boom", "boom", boom)
    rv = app.test_client().get("/boom")
    assert rv.status_code == 500
    body = rv.get_json()
    assert body == {"success": False, "message": "A server error occurred."}


def test_json_formatter_includes_request_fields():
    record = logging.LogRecord("timemate.request", logging.INFO, __file__, 1, "request handled", None, None)
    record.event = "http_request"
    record.path = "/health"
    record.status = 200
    out = json.loads(JSONFormatter().format(record))
    assert out["level"] == "INFO"
    assert out["logger"] == "timemate.request"
    assert out["event"] == "http_request"
    assert out["path"] == "/health"
    assert out["status"] == 200
    assert "actor" not in out

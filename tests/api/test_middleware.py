"""Tests for RequestIDMiddleware."""

from uuid import UUID

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.testclient import TestClient

from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware


@pytest.fixture
def app():
    """Minimal FastAPI app with RequestIDMiddleware."""
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    @app.get("/test")
    async def test_endpoint(request: Request):
        return JSONResponse({"request_id": request.state.request_id})

    @app.get("/missing")
    async def missing_endpoint():
        raise ValueError("Invoice 2026-3-15 not found")

    return app


@pytest.fixture
def client(app):
    return TestClient(app)


class TestRequestIDMiddleware:
    """Tests for RequestIDMiddleware."""

    def test_response_has_request_id_header(self, client):
        response = client.get("/test")
        UUID(response.headers["X-Request-ID"])

    def test_request_state_has_request_id(self, client):
        response = client.get("/test")
        assert response.headers["X-Request-ID"] == response.json()["request_id"]

    def test_each_request_gets_unique_id(self, client):
        r1 = client.get("/test")
        r2 = client.get("/test")
        assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]

    def test_incoming_request_id_is_reused(self, client):
        response = client.get("/test", headers={"X-Request-ID": "client-42"})

        assert response.headers["X-Request-ID"] == "client-42"
        assert response.json()["request_id"] == "client-42"

    def test_error_envelope_carries_request_id(self, client):
        response = client.get("/missing", headers={"X-Request-ID": "client-43"})

        assert response.status_code == 404
        assert response.json()["meta"]["request_id"] == "client-43"
        assert response.headers["X-Request-ID"] == "client-43"

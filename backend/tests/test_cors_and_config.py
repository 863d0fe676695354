from fastapi import status
from fastapi.testclient import TestClient

from app.main import app


def test_cors_preflight_options_auth_login() -> None:
    """Preflight to /api/auth/login from an allowed origin gets credentialed CORS headers."""
    client = TestClient(app)

    response = client.options(
        "/api/auth/login",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert "POST" in response.headers["access-control-allow-methods"]
    assert response.headers["access-control-allow-credentials"] == "true"
    assert response.headers["access-control-allow-headers"] == "content-type"
    assert response.headers["vary"] == "Origin"


def test_cors_preflight_with_disallowed_origin() -> None:
    """Disallowed origins still get 204, but without CORS headers."""
    client = TestClient(app)

    response = client.options(
        "/api/guests",
        headers={
            "Origin": "http://evil.com",
            "Access-Control-Request-Method": "DELETE",
        },
    )

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert "access-control-allow-origin" not in response.headers


def test_cors_preflight_with_trailing_slash() -> None:
    """Origins must match exactly."""
    client = TestClient(app)

    response = client.options(
        "/api/auth/login",
        headers={
            "Origin": "http://localhost:3000/",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert "access-control-allow-origin" not in response.headers


def test_simple_request_from_allowed_origin_gets_cors_headers() -> None:
    client = TestClient(app)

    response = client.get("/api/users/me", headers={"Origin": "http://localhost:3000"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-credentials"] == "true"

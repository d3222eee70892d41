"""Tests for the FastAPI main application factory and health checks.

This module validates that:
    - The FastAPI app is correctly instantiated via main.create_app,
    - OpenAPI metadata (title, version) matches the project contract,
    - Every gateway route is registered,
    - The /health endpoint returns the expected response.
"""

from __future__ import annotations

from typing import cast

from fastapi import testclient

from app import main


def test_create_app() -> None:
    """Test that create_app returns a configured FastAPI instance."""
    app = main.create_app()
    assert app is not None
    assert app.title == "GeoServer Gateway"
    assert app.version == "0.1.0"


def test_health_endpoint() -> None:
    """Test the health check endpoint returns ok status."""
    app = main.create_app()
    client = testclient.TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_app_includes_gateway_routes() -> None:
    """Test that all gateway routers are included in the app."""
    app = main.create_app()
    routes: set[str] = {
        cast(str, getattr(route, "path", ""))
        for route in app.routes  # type: ignore[attr-defined]
        if hasattr(route, "path")
    }
    assert {
        "/health",
        "/wmservice",
        "/features",
        "/features/{workspace}/{layername}/{feature_name}/{feature_value}",
        "/graphic",
        "/graphic/{workspace}/{layername}",
        "/capabilities/{workspace}/{layer_name}",
    } <= routes

"""Pytest configuration exposing the app package and a fake GeoServer.

The ``gateway`` fixture builds the FastAPI app with the GeoServer client
dependency replaced by one whose network transport is an
``httpx.MockTransport``. Tests register a handler that receives every
outbound request and returns the upstream response to simulate.
"""

from __future__ import annotations

import pathlib
import sys
from typing import TYPE_CHECKING

import httpx
import pytest
from fastapi import testclient

BACKEND_ROOT = pathlib.Path(__file__).resolve().parent

if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from app import main  # noqa: E402
from app.core import config  # noqa: E402
from app.services import geoserver  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

BASE_URL = "http://geoserver.test/geoserver"


class FakeGeoServer:
    """Records outbound requests and answers them with a handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200)
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def upstream() -> FakeGeoServer:
    """Fake GeoServer answering 200 with an empty body by default."""
    return FakeGeoServer()


@pytest.fixture
def settings() -> config.Settings:
    """Settings pointing at the fake GeoServer base URL."""
    return config.Settings(geoserver_base_url=BASE_URL)


@pytest.fixture
def gateway(
    upstream: FakeGeoServer,
    settings: config.Settings,
) -> Iterator[testclient.TestClient]:
    """Test client whose GeoServer calls are served by ``upstream``."""
    app = main.create_app()
    app.dependency_overrides[config.get_settings] = lambda: settings
    app.dependency_overrides[geoserver.get_client] = (
        lambda: geoserver.GeoServerClient(
            settings.geoserver_base_url,
            settings.upstream_timeout_seconds,
            transport=httpx.MockTransport(upstream),
        )
    )
    try:
        yield testclient.TestClient(app)
    finally:
        app.dependency_overrides.clear()

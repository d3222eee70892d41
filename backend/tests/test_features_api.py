"""API tests for the WFS feature query proxy (``/features``).

These tests verify that:
    - The path shape builds a workspace-scoped GetFeature call with an
      escaped CQL equality filter,
    - The flat shape forwards WFS parameters to the shared endpoint,
    - Upstream JSON is relayed byte-for-byte,
    - Every failure collapses into the generic 500 payload.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

if TYPE_CHECKING:
    from conftest import FakeGeoServer
    from fastapi import testclient

    from app.core import config

FEATURES = json.dumps(
    {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "id": "layer.1",
                "geometry": {"type": "Point", "coordinates": [-84.2, 30.4]},
                "properties": {"owner": "SMITH"},
            },
        ],
    },
    indent=1,
).encode()

INTERNAL_ERROR = {"error": "Internal Server Error"}


def _features(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        content=FEATURES,
        headers={"content-type": "application/json;charset=UTF-8"},
    )


def test_find_features_builds_filtered_query(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
) -> None:
    """Test the end-to-end attribute lookup for owner=SMITH."""
    upstream.handler = _features

    response = gateway.get("/features/ws/layer/owner/SMITH")

    assert response.status_code == 200
    assert response.content == FEATURES
    assert response.json()["features"][0]["properties"]["owner"] == "SMITH"

    sent = upstream.last
    assert sent.method == "GET"
    assert sent.url.path == "/geoserver/ws/ows"
    assert dict(sent.url.params) == {
        "service": "WFS",
        "version": "1.0.0",
        "request": "GetFeature",
        "typeName": "ws:layer",
        "outputFormat": "application/json",
        "CQL_FILTER": "owner='SMITH'",
    }


def test_find_features_escapes_values(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
) -> None:
    """Test that quotes and operators in a value stay inside the literal."""
    upstream.handler = _features

    response = gateway.get("/features/ws/layer/owner/O'Brien' OR 1=1")

    assert response.status_code == 200
    assert upstream.last.url.params["CQL_FILTER"] == (
        "owner='O''Brien'' OR 1=1'"
    )


def test_find_features_quotes_numeric_value(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
) -> None:
    """Test that numeric-looking values keep their leading zeros."""
    upstream.handler = _features

    gateway.get("/features/ws/parcels/zip/00742")

    assert upstream.last.url.params["CQL_FILTER"] == "zip='00742'"
    assert upstream.last.url.params["typeName"] == "ws:parcels"


def test_find_features_applies_feature_cap(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
    settings: config.Settings,
) -> None:
    """Test that a configured feature cap is forwarded."""
    settings.max_features = 50
    upstream.handler = _features

    gateway.get("/features/ws/layer/owner/SMITH")

    assert upstream.last.url.params["maxFeatures"] == "50"


def test_find_features_upstream_error(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
) -> None:
    """Test that an upstream error status is a generic 500."""
    upstream.handler = lambda request: httpx.Response(404)

    response = gateway.get("/features/ws/layer/owner/SMITH")

    assert response.status_code == 500
    assert response.json() == INTERNAL_ERROR


def test_find_features_unreachable(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
) -> None:
    """Test that an unreachable upstream is a generic 500."""

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = refuse

    response = gateway.get("/features/ws/layer/owner/SMITH")

    assert response.status_code == 500
    assert response.json() == INTERNAL_ERROR


def test_find_features_exception_report(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
) -> None:
    """Test that a WFS exception report served with 200 is a 500."""
    upstream.handler = lambda request: httpx.Response(
        200,
        content=(
            b'<ows:ExceptionReport xmlns:ows="http://www.opengis.net/ows">'
            b"<ows:Exception><ows:ExceptionText>Illegal property name"
            b"</ows:ExceptionText></ows:Exception></ows:ExceptionReport>"
        ),
        headers={"content-type": "application/xml"},
    )

    response = gateway.get("/features/ws/layer/ownr/SMITH")

    assert response.status_code == 500
    assert response.json() == INTERNAL_ERROR


def test_query_features_forwards_flat_parameters(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
) -> None:
    """Test that the flat shape reaches the shared WFS endpoint."""
    upstream.handler = _features

    response = gateway.get(
        "/features",
        params={
            "service": "WFS",
            "version": "1.0.0",
            "request": "GetFeature",
            "typeName": "ws:parcels",
            "outputFormat": "application/json",
            "CQL_FILTER": "owner='SMITH' AND area>100",
        },
    )

    assert response.status_code == 200
    assert response.content == FEATURES
    sent = upstream.last
    assert sent.url.path == "/geoserver/wfs"
    assert sent.url.params["typeName"] == "ws:parcels"
    assert sent.url.params["CQL_FILTER"] == "owner='SMITH' AND area>100"


def test_query_features_upstream_error(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
) -> None:
    """Test that the flat shape shares the generic failure payload."""
    upstream.handler = lambda request: httpx.Response(500)

    response = gateway.get("/features", params={"typeName": "ws:parcels"})

    assert response.status_code == 500
    assert response.json() == INTERNAL_ERROR


@pytest.mark.parametrize(
    "workspace",
    ["ws%3FtypeName=secret%23", "ws%23frag", "w%20s"],
)
def test_find_features_rejects_unsafe_workspace(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
    workspace: str,
) -> None:
    """Test that a workspace able to leave its path segment is a 400."""
    response = gateway.get(f"/features/{workspace}/layer/owner/SMITH")

    assert response.status_code == 400
    assert "Invalid workspace name" in response.json()["detail"]
    assert upstream.requests == []


def test_find_features_workspace_stays_in_path(
    gateway: testclient.TestClient,
    upstream: FakeGeoServer,
) -> None:
    """Test that the upstream call keeps only the gateway's own parameters."""
    upstream.handler = _features

    gateway.get("/features/my_ws-1/layer/owner/SMITH")

    sent = upstream.last
    assert sent.url.path == "/geoserver/my_ws-1/ows"
    assert set(sent.url.params) == {
        "service", "version", "request", "typeName", "outputFormat",
        "CQL_FILTER",
    }

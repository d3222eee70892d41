"""WMS map image proxy endpoints.

This module exposes two call shapes for the same GetMap translation:

- ``POST /wmservice`` takes ``workspace``, ``layerName``, ``bbox`` and
  ``SRS`` from a JSON body (falling back to the query string) and builds a
  GetMap request with the gateway's default image size and style, posted to
  ``{base}/{workspace}/wms``.
- ``GET /wmservice`` takes a flat set of WMS key/value parameters and
  forwards them to ``{base}/wms``.

Both shapes go through the same request model and the same upstream error
mapping, and both answer with the raw image bytes.

Example:
    Request a map image:
        >>> response = client.post("/wmservice", json={
        ...     "workspace": "topp",
        ...     "layerName": "states",
        ...     "bbox": [-124.73, 24.96, -66.97, 49.37],
        ...     "SRS": "EPSG:4326",
        ... })
        >>> response.headers["content-type"]
        'image/png'
"""

from __future__ import annotations

import json
import logging
from typing import Any

import fastapi
from fastapi import responses

from app.core import config
from app.ogc import models, params
from app.services import geoserver, normalizer

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(tags=["maps"])

_ERROR_PREFIX = "Error fetching WMS data"


def _to_http_error(exc: geoserver.GeoServerError) -> fastapi.HTTPException:
    """Map an upstream failure to the gateway response for map requests."""
    if isinstance(exc, geoserver.UpstreamStatusError):
        return fastapi.HTTPException(
            status_code=exc.status_code,
            detail=f"{_ERROR_PREFIX}: {exc.reason}",
        )
    if isinstance(exc, geoserver.UpstreamTimeoutError):
        return fastapi.HTTPException(
            status_code=504,
            detail=f"{_ERROR_PREFIX}: Upstream request timed out",
        )
    if isinstance(exc, geoserver.RequestSetupError):
        return fastapi.HTTPException(
            status_code=500,
            detail=f"{_ERROR_PREFIX}: Request setup error",
        )
    return fastapi.HTTPException(
        status_code=500,
        detail=f"{_ERROR_PREFIX}: No response received from server",
    )


async def _read_body(request: fastapi.Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise fastapi.HTTPException(
            status_code=400,
            detail="Request body must be a JSON object",
        ) from exc
    if not isinstance(body, dict):
        raise fastapi.HTTPException(
            status_code=400,
            detail="Request body must be a JSON object",
        )
    return body


async def _dispatch(
    map_request: models.MapRequest,
    client: geoserver.GeoServerClient,
    method: str,
) -> responses.Response:
    try:
        upstream = await client.request(
            method,
            map_request.service_path,
            params.map_params(map_request),
        )
    except geoserver.GeoServerError as exc:
        logger.error("%s: %s", _ERROR_PREFIX, exc)
        raise _to_http_error(exc) from exc

    if map_request.is_get_map:
        return normalizer.relay_image(upstream, map_request.format)
    return normalizer.relay_image(
        upstream,
        normalizer.content_type(upstream) or map_request.format,
    )


@router.post("/wmservice")
async def post_map_image(
    request: fastapi.Request,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
    client: geoserver.GeoServerClient = fastapi.Depends(geoserver.get_client),  # noqa: B008
) -> responses.Response:
    """Render a single workspace layer through WMS GetMap.

    Args:
        request: Inbound request; fields are read from the JSON body and
            fall back to the query string.
        settings: Application settings (injected via FastAPI Depends).
        client: GeoServer client (injected via FastAPI Depends).

    Returns:
        Image response carrying the upstream bytes unchanged.

    Raises:
        HTTPException: 400 if workspace, layerName, bbox or SRS is missing or
            the bbox does not have four numeric components; the upstream
            status if GeoServer answered with an error; 504 on timeout; 500
            if no response was received or the request could not be built.
    """
    data: dict[str, Any] = dict(request.query_params)
    data.update(await _read_body(request))

    try:
        map_request = params.map_request_from_body(data, settings)
    except params.InvalidRequestError as exc:
        logger.error("Rejected map request: %s", exc)
        raise fastapi.HTTPException(status_code=400, detail=str(exc)) from exc

    return await _dispatch(map_request, client, "POST")


@router.get("/wmservice")
async def get_map_image(
    request: fastapi.Request,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
    client: geoserver.GeoServerClient = fastapi.Depends(geoserver.get_client),  # noqa: B008
) -> responses.Response:
    """Forward a flat set of WMS parameters to the shared WMS endpoint.

    Keys are matched case-insensitively. ``LAYERS``, ``BBOX`` and one of
    ``CRS``/``SRS`` are required; ``QUERY_LAYERS``, ``INFO_FORMAT``, ``I``,
    ``J`` and ``TILED`` are passed through so GetFeatureInfo requests work
    too.

    Raises:
        HTTPException: Same mapping as ``POST /wmservice``.
    """
    try:
        map_request = params.map_request_from_query(
            request.query_params,
            settings,
        )
    except params.InvalidRequestError as exc:
        logger.error("Rejected map request: %s", exc)
        raise fastapi.HTTPException(status_code=400, detail=str(exc)) from exc

    return await _dispatch(map_request, client, "GET")

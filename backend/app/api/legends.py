"""WMS legend graphic proxy endpoints.

Legend requests are sent to the shared ``{base}/wms`` endpoint. GeoServer
reports an unknown layer as a service-exception document rather than an
error status, so responses below 500 are inspected by content type and an
exception report becomes a 404 carrying the upstream message.
"""

from __future__ import annotations

import logging

import fastapi
from fastapi import responses

from app.core import config
from app.ogc import models, params
from app.services import geoserver, normalizer

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/graphic", tags=["legends"])


async def _fetch_legend(
    legend: models.LegendRequest,
    client: geoserver.GeoServerClient,
) -> responses.Response:
    try:
        upstream = await client.get(
            legend.service_path,
            params.legend_params(legend),
            error_status=500,
        )
    except geoserver.GeoServerError as exc:
        logger.error("Error fetching legend graphic: %s", exc)
        raise fastapi.HTTPException(
            status_code=500,
            detail="Error fetching legend graphic",
        ) from exc

    return normalizer.legend_response(upstream)


@router.get("")
async def query_legend_graphic(
    request: fastapi.Request,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
    client: geoserver.GeoServerClient = fastapi.Depends(geoserver.get_client),  # noqa: B008
) -> responses.Response:
    """Forward flat GetLegendGraphic parameters (``LAYER`` required)."""
    try:
        legend = params.legend_request_from_query(request.query_params, settings)
    except params.InvalidRequestError as exc:
        logger.error("Rejected legend request: %s", exc)
        raise fastapi.HTTPException(status_code=400, detail=str(exc)) from exc

    return await _fetch_legend(legend, client)


@router.get("/{workspace}/{layername}")
async def get_legend_graphic(
    workspace: str,
    layername: str,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
    client: geoserver.GeoServerClient = fastapi.Depends(geoserver.get_client),  # noqa: B008
) -> responses.Response:
    """Return the PNG legend of a workspace layer.

    Args:
        workspace: GeoServer workspace.
        layername: Layer name within the workspace.
        settings: Application settings (injected via FastAPI Depends).
        client: GeoServer client (injected via FastAPI Depends).

    Returns:
        PNG image response with the legend graphic.

    Raises:
        HTTPException: 404 with the upstream message if GeoServer answered
            with a service exception; 500 if that answer could not be
            parsed, had an unexpected content type, or the upstream failed.
    """
    try:
        legend = params.legend_request_from_path(workspace, layername,
                                                 settings)
    except params.InvalidRequestError as exc:
        logger.error("Rejected legend request: %s", exc)
        raise fastapi.HTTPException(status_code=400, detail=str(exc)) from exc
    return await _fetch_legend(legend, client)

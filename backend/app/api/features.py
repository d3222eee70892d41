"""WFS feature query proxy endpoints.

``GET /features/{workspace}/{layername}/{featureName}/{featureValue}``
looks up features of one layer by attribute equality. The attribute pair is
rendered as an escaped CQL predicate, so values containing quotes or CQL
operators cannot alter the filter.

``GET /features`` forwards a flat WFS query (``typeName``, ``CQL_FILTER``,
``outputFormat``...) to the shared ``{base}/wfs`` endpoint.

Both relay the upstream JSON body verbatim and answer any failure with a
generic 500 payload after logging the cause.

Example:
    Find parcels owned by SMITH:
        >>> response = client.get("/features/ws/parcels/owner/SMITH")
        >>> # Upstream: {base}/ws/ows?service=WFS&request=GetFeature
        >>> #     &typeName=ws:parcels&CQL_FILTER=owner='SMITH'
"""

from __future__ import annotations

import logging

import fastapi
from fastapi import responses

from app.core import config
from app.ogc import models, params
from app.services import geoserver, normalizer

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/features", tags=["features"])

INTERNAL_ERROR = {"error": "Internal Server Error"}


async def _fetch_features(
    query: models.FeatureQuery,
    client: geoserver.GeoServerClient,
) -> responses.Response:
    try:
        upstream = await client.get(
            query.service_path,
            params.feature_params(query),
        )
        return normalizer.relay_json(upstream)
    except geoserver.GeoServerError as exc:
        logger.error("Error fetching features: %s", exc)
        return responses.JSONResponse(status_code=500, content=INTERNAL_ERROR)


@router.get("")
async def query_features(
    request: fastapi.Request,
    client: geoserver.GeoServerClient = fastapi.Depends(geoserver.get_client),  # noqa: B008
) -> responses.Response:
    """Forward a flat WFS GetFeature query to the shared WFS endpoint."""
    query = params.feature_query_from_query(request.query_params)
    return await _fetch_features(query, client)


@router.get("/{workspace}/{layername}/{feature_name}/{feature_value}")
async def find_features(
    workspace: str,
    layername: str,
    feature_name: str,
    feature_value: str,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
    client: geoserver.GeoServerClient = fastapi.Depends(geoserver.get_client),  # noqa: B008
) -> responses.Response:
    """Return features of a workspace layer matching one attribute value.

    Args:
        workspace: GeoServer workspace.
        layername: Layer (feature type) name within the workspace.
        feature_name: Attribute to filter on.
        feature_value: Value the attribute must equal.
        settings: Application settings (injected via FastAPI Depends).
        client: GeoServer client (injected via FastAPI Depends).

    Returns:
        The upstream GeoJSON feature collection, unchanged.
    """
    try:
        query = params.feature_query_from_path(
            workspace,
            layername,
            feature_name,
            feature_value,
            settings,
        )
    except params.InvalidRequestError as exc:
        logger.error("Rejected feature query: %s", exc)
        raise fastapi.HTTPException(status_code=400, detail=str(exc)) from exc
    return await _fetch_features(query, client)

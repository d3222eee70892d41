"""Layer metadata lookup from WMS capabilities documents.

Example:
    Describe a layer:
        >>> response = client.get("/capabilities/myworkspace/Parcels")
        >>> response.json()
        >>> # {"layerName": "myworkspace:Parcels", "title": "Parcels",
        >>> #  "abstract": "No abstract",
        >>> #  "boundingBox": {"SRS": "EPSG:4326", "minx": "-84.8", ...}}
"""

from __future__ import annotations

import logging
from typing import Any

import fastapi

from app.ogc import params
from app.ogc import xml as ogc_xml
from app.services import geoserver

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/capabilities", tags=["capabilities"])


@router.get("/{workspace}/{layer_name}")
async def describe_layer(
    workspace: str,
    layer_name: str,
    client: geoserver.GeoServerClient = fastapi.Depends(geoserver.get_client),  # noqa: B008
) -> dict[str, Any]:
    """Find one layer in the workspace's WMS 1.1.0 capabilities document.

    Only direct sublayers of the root layer container are searched, and the
    layer name must match exactly.

    Args:
        workspace: GeoServer workspace.
        layer_name: Layer name within the workspace.
        client: GeoServer client (injected via FastAPI Depends).

    Returns:
        Dictionary with ``layerName``, ``title``, ``abstract`` and
        ``boundingBox``.

    Raises:
        HTTPException: 404 if the layer is not listed; 500 if the document
            could not be fetched or parsed; 502 if it does not have the
            expected capabilities structure.
    """
    try:
        params.validate_workspace(workspace)
    except params.InvalidRequestError as exc:
        logger.error("Rejected capabilities request: %s", exc)
        raise fastapi.HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        upstream = await client.get(
            f"{workspace}/wms",
            params.capabilities_params(),
        )
    except geoserver.GeoServerError as exc:
        logger.error("Error fetching capabilities: %s", exc)
        raise fastapi.HTTPException(
            status_code=500,
            detail="Error fetching capabilities",
        ) from exc

    try:
        layer = ogc_xml.find_layer(upstream.content, workspace, layer_name)
    except ogc_xml.XMLParseError as exc:
        logger.error("Error parsing XML: %s", exc)
        raise fastapi.HTTPException(
            status_code=500,
            detail="Error parsing XML",
        ) from exc
    except ogc_xml.CapabilitiesShapeError as exc:
        logger.error("Unexpected capabilities document: %s", exc)
        raise fastapi.HTTPException(
            status_code=502,
            detail="Unexpected capabilities document structure",
        ) from exc

    if layer is None:
        logger.error("Layer %s not found in %s capabilities", layer_name,
                     workspace)
        raise fastapi.HTTPException(
            status_code=404,
            detail="Layer not found in the capabilities document.",
        )

    return layer.to_json()

"""Conversion of upstream GeoServer responses into gateway responses.

The gateway decides how to answer from the upstream's declared content
type: image payloads and JSON are relayed byte-for-byte, OGC exception
reports are parsed so their message can be returned to the caller, and any
other payload is treated as an error.
"""

from __future__ import annotations

import logging

import fastapi
import httpx
from fastapi import responses

from app.ogc import models
from app.ogc import xml as ogc_xml
from app.services import geoserver

logger = logging.getLogger(__name__)


class UnexpectedPayloadError(geoserver.GeoServerError):
    """GeoServer answered successfully but with an unusable payload."""


def content_type(response: httpx.Response) -> str:
    """Return the lower-cased upstream content type, or an empty string."""
    return response.headers.get("content-type", "").lower()


def relay_image(
    response: httpx.Response,
    media_type: str = models.IMAGE_PNG,
) -> responses.Response:
    """Relay upstream image bytes unchanged."""
    return responses.Response(content=response.content, media_type=media_type)


def relay_json(response: httpx.Response) -> responses.Response:
    """Relay an upstream JSON body unchanged.

    Raises:
        UnexpectedPayloadError: If the upstream did not declare JSON. WFS
            servers report query errors as XML with a 200 status, so the
            exception text is extracted and logged when possible.
    """
    declared = content_type(response)
    if "json" in declared:
        return responses.Response(
            content=response.content,
            media_type=models.GEOJSON,
        )

    message = None
    if "xml" in declared:
        try:
            message = ogc_xml.service_exception_message(response.content)
        except ogc_xml.XMLParseError:
            logger.warning("Unparsable XML payload from %s", response.url)
    raise UnexpectedPayloadError(
        message or f"Unexpected content type {declared or 'none'!r}",
    )


def legend_response(response: httpx.Response) -> responses.Response:
    """Normalize a GetLegendGraphic response.

    Returns:
        The legend image for ``image/png`` payloads.

    Raises:
        HTTPException: 404 with the upstream exception message for
            ``application/vnd.ogc.se_xml`` payloads, 500 if that payload is
            not well-formed, and 500 for any other content type.
    """
    declared = content_type(response)

    if models.IMAGE_PNG in declared:
        return relay_image(response)

    if models.SERVICE_EXCEPTION_XML in declared:
        try:
            message = ogc_xml.service_exception_message(response.content)
        except ogc_xml.XMLParseError:
            logger.exception("Error parsing legend exception report")
            raise fastapi.HTTPException(
                status_code=500,
                detail="Error parsing server response",
            ) from None
        logger.error("Error fetching legend graphic: %s", message)
        raise fastapi.HTTPException(
            status_code=404,
            detail=message or "Layer not found",
        )

    logger.error("Unexpected legend content type %r", declared)
    raise fastapi.HTTPException(
        status_code=500,
        detail="Unexpected response format",
    )

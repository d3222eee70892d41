"""Parameter mapping between inbound call shapes and upstream requests.

Every gateway route accepts one of two call shapes: structured values (a
JSON body or path segments) or a flat OGC key/value query string. The
``*_from_*`` adapters in this module turn either shape into the shared
request model from :mod:`app.ogc.models`, and the ``*_params`` functions
serialize that model into the query parameters sent to GeoServer.

Values are never concatenated into URLs here; the HTTP client URL-encodes
the returned mappings. Attribute filters are rendered as escaped CQL so a
caller-supplied value cannot change the shape of the filter expression.

Example:
    Build an escaped equality filter:
        >>> from app.ogc import models, params
        >>> params.equality_filter(models.AttributeFilter("owner", "O'Brien"))
        "owner='O''Brien'"
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from app.ogc import models

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.core import config

MISSING_MAP_PARAMS = (
    "Missing required parameters: workspace, layerName, bbox, SRS"
)
INVALID_BBOX = (
    "Invalid BBOX format. It should be in the format: minx,miny,maxx,maxy"
)

_WMS_PASSTHROUGH_KEYS = ("QUERY_LAYERS", "TILED", "INFO_FORMAT", "I", "J",
                         "X", "Y", "FEATURE_COUNT")
_CQL_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_WORKSPACE_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


class InvalidRequestError(ValueError):
    """Raised when inbound parameters cannot form a valid upstream request."""


def parse_bbox(value: Any) -> models.BBox:
    """Parse a bounding box from a list or a comma-separated string.

    Args:
        value: Four numbers (or numeric strings) as a list/tuple, or a
            string such as ``"-84.8,39.2,-83.1,40.8"``.

    Returns:
        Parsed bounding box.

    Raises:
        InvalidRequestError: If the value does not have exactly four
            numeric components in min/max order.
    """
    if isinstance(value, str):
        parts: list[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        raise InvalidRequestError(INVALID_BBOX)

    if len(parts) != 4:
        raise InvalidRequestError(INVALID_BBOX)

    try:
        minx, miny, maxx, maxy = (_to_float(part) for part in parts)
    except (TypeError, ValueError) as exc:
        raise InvalidRequestError(INVALID_BBOX) from exc

    if minx > maxx or miny > maxy:
        raise InvalidRequestError(INVALID_BBOX)

    return models.BBox(minx, miny, maxx, maxy)


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("boolean is not a coordinate")
    number = float(value.strip() if isinstance(value, str) else value)
    if number != number or number in (float("inf"), float("-inf")):
        raise ValueError("coordinate must be finite")
    return number


def _positive_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRequestError("Invalid image size") from exc
    if isinstance(value, bool) or number <= 0:
        raise InvalidRequestError("Invalid image size")
    return number


def validate_workspace(name: str) -> str:
    """Check that a workspace name is a single safe URL path segment.

    Raises:
        InvalidRequestError: If the name contains characters other than
            letters, digits, ``_``, ``.`` and ``-``, or is a dot segment.
    """
    if not _WORKSPACE_NAME.match(name) or name in (".", ".."):
        raise InvalidRequestError(f"Invalid workspace name: {name!r}")
    return name


def _upper_keys(query: Mapping[str, str]) -> dict[str, str]:
    return {key.upper(): value for key, value in query.items()}


def escape_cql_identifier(name: str) -> str:
    """Render an attribute name for use in a CQL expression."""
    if _CQL_IDENTIFIER.match(name):
        return name
    return '"' + name.replace('"', '""') + '"'


def escape_cql_literal(value: str) -> str:
    """Render a value as a quoted CQL string literal.

    Path segments are always text, so numeric-looking values such as
    ``007`` are quoted too and keep their leading zeros; GeoServer converts
    the literal to the attribute type when comparing.
    """
    return "'" + value.replace("'", "''") + "'"


def equality_filter(attribute: models.AttributeFilter) -> str:
    """Build ``name=value`` as an escaped CQL predicate.

    Raises:
        InvalidRequestError: If the attribute name or value is empty.
    """
    if not attribute.name or not attribute.value:
        raise InvalidRequestError(
            "Attribute name and value are both required",
        )
    return (
        f"{escape_cql_identifier(attribute.name)}"
        f"={escape_cql_literal(attribute.value)}"
    )


def map_request_from_body(
    data: Mapping[str, Any],
    settings: config.Settings,
) -> models.MapRequest:
    """Adapt the structured (JSON body) call shape to a map request.

    Args:
        data: Merged body/query values with keys ``workspace``,
            ``layerName``, ``bbox``, ``SRS`` and optionally ``width``,
            ``height``, ``styles``, ``format`` and ``transparent``.
        settings: Application settings providing default image size.

    Returns:
        Map request scoped to the given workspace.

    Raises:
        InvalidRequestError: If a required field is missing or the bbox is
            malformed.
    """
    workspace = data.get("workspace")
    layer_name = data.get("layerName")
    bbox = data.get("bbox")
    srs = data.get("SRS")

    if not workspace or not layer_name or not bbox or not srs:
        raise InvalidRequestError(MISSING_MAP_PARAMS)

    return models.MapRequest(
        workspace=validate_workspace(str(workspace)),
        layers=models.qualified_name(str(workspace), str(layer_name)),
        bbox=parse_bbox(bbox),
        srs=str(srs),
        width=_positive_int(data.get("width"), settings.map_width),
        height=_positive_int(data.get("height"), settings.map_height),
        styles=str(data.get("styles") or ""),
        format=str(data.get("format") or models.IMAGE_PNG),
        transparent=(
            True if data.get("transparent") is None else data["transparent"]
        ),
    )


def map_request_from_query(
    query: Mapping[str, str],
    settings: config.Settings,
) -> models.MapRequest:
    """Adapt the flat WMS key/value call shape to a map request.

    Keys are matched case-insensitively. ``LAYERS``, ``BBOX`` and one of
    ``CRS``/``SRS`` are required; the remaining keys fall back to GetMap
    defaults.

    Raises:
        InvalidRequestError: If a required key is missing or the bbox is
            malformed.
    """
    params = _upper_keys(query)
    crs_param = "CRS" if params.get("CRS") else "SRS"
    layers = params.get("LAYERS")
    bbox = params.get("BBOX")
    srs = params.get(crs_param)

    if not layers or not bbox or not srs:
        raise InvalidRequestError(
            "Missing required parameters: LAYERS, BBOX, CRS or SRS",
        )

    return models.MapRequest(
        layers=layers,
        bbox=parse_bbox(bbox),
        srs=srs,
        width=params.get("WIDTH") or settings.map_width,
        height=params.get("HEIGHT") or settings.map_height,
        styles=params.get("STYLES", ""),
        format=params.get("FORMAT") or models.IMAGE_PNG,
        transparent=params.get("TRANSPARENT", True),
        version=params.get("VERSION") or "1.1.0",
        operation=params.get("REQUEST") or "GetMap",
        crs_param=crs_param,
        extra={
            key: params[key]
            for key in _WMS_PASSTHROUGH_KEYS
            if params.get(key) is not None
        },
    )


def feature_query_from_path(
    workspace: str,
    layer_name: str,
    feature_name: str,
    feature_value: str,
    settings: config.Settings,
) -> models.FeatureQuery:
    """Adapt the path-segment call shape to a feature query."""
    validate_workspace(workspace)
    attribute = models.AttributeFilter(feature_name, feature_value)
    return models.FeatureQuery(
        workspace=workspace,
        type_name=models.qualified_name(workspace, layer_name),
        cql_filter=equality_filter(attribute),
        max_features=settings.max_features,
    )


def feature_query_from_query(query: Mapping[str, str]) -> models.FeatureQuery:
    """Adapt the flat WFS key/value call shape to a feature query.

    The ``CQL_FILTER`` value is forwarded as the caller wrote it; it is an
    expression rather than a single value, so only URL encoding applies.
    """
    params = _upper_keys(query)
    return models.FeatureQuery(
        type_name=params.get("TYPENAME") or params.get("TYPENAMES"),
        cql_filter=params.get("CQL_FILTER"),
        output_format=params.get("OUTPUTFORMAT") or models.GEOJSON,
        max_features=params.get("MAXFEATURES") or params.get("COUNT"),
        version=params.get("VERSION") or "1.0.0",
        operation=params.get("REQUEST") or "GetFeature",
    )


def legend_request_from_path(
    workspace: str,
    layer_name: str,
    settings: config.Settings,
) -> models.LegendRequest:
    """Adapt the path-segment call shape to a legend request."""
    validate_workspace(workspace)
    return models.LegendRequest(
        layer=models.qualified_name(workspace, layer_name),
        width=settings.legend_width,
        height=settings.legend_height,
    )


def legend_request_from_query(
    query: Mapping[str, str],
    settings: config.Settings,
) -> models.LegendRequest:
    """Adapt the flat legend key/value call shape to a legend request.

    Raises:
        InvalidRequestError: If ``LAYER`` is missing.
    """
    params = _upper_keys(query)
    layer = params.get("LAYER")
    if not layer:
        raise InvalidRequestError("Missing required parameter: LAYER")

    return models.LegendRequest(
        layer=layer,
        width=params.get("WIDTH") or settings.legend_width,
        height=params.get("HEIGHT") or settings.legend_height,
        format=params.get("FORMAT") or models.IMAGE_PNG,
        version=params.get("VERSION") or "1.0.0",
        operation=params.get("REQUEST") or "GetLegendGraphic",
    )


def _flag(value: bool | str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def map_params(request: models.MapRequest) -> dict[str, str]:
    """Serialize a map request into WMS query parameters."""
    params = {
        "SERVICE": "WMS",
        "VERSION": request.version,
        "REQUEST": request.operation,
        "LAYERS": request.layers,
        "STYLES": request.styles,
        "FORMAT": request.format,
        "TRANSPARENT": _flag(request.transparent),
        "WIDTH": str(request.width),
        "HEIGHT": str(request.height),
    }
    if request.srs is not None:
        params[request.crs_param] = request.srs
    if request.bbox is not None:
        params["BBOX"] = request.bbox.to_param()
    params.update(request.extra)
    return params


def feature_params(query: models.FeatureQuery) -> dict[str, str]:
    """Serialize a feature query into WFS query parameters."""
    params = {
        "service": "WFS",
        "version": query.version,
        "request": query.operation,
        "outputFormat": query.output_format,
    }
    if query.type_name:
        params["typeName"] = query.type_name
    if query.cql_filter:
        params["CQL_FILTER"] = query.cql_filter
    if query.max_features is not None:
        params["maxFeatures"] = str(query.max_features)
    return params


def legend_params(request: models.LegendRequest) -> dict[str, str]:
    """Serialize a legend request into WMS query parameters."""
    return {
        "REQUEST": request.operation,
        "VERSION": request.version,
        "FORMAT": request.format,
        "WIDTH": str(request.width),
        "HEIGHT": str(request.height),
        "LAYER": request.layer,
    }


def capabilities_params() -> dict[str, str]:
    """Return the fixed WMS 1.1.0 GetCapabilities parameters."""
    return {
        "service": "WMS",
        "version": "1.1.0",
        "request": "GetCapabilities",
    }

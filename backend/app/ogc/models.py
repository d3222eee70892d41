"""Request-scoped data models for the GeoServer gateway.

This module defines the internal request model shared by every inbound call
shape. Route handlers only extract raw values; the adapters in
:mod:`app.ogc.params` turn them into one of these dataclasses, and the same
dataclass is then serialized into upstream query parameters regardless of
whether it came from a JSON body, a flat query string, or path segments.

Nothing here is persisted. Instances are built per inbound request and
discarded once the response is sent.

Example:
    Building a map request for a single layer:
        >>> from app.ogc.models import BBox, MapRequest
        >>> request = MapRequest(
        ...     workspace="topp",
        ...     layers="topp:states",
        ...     bbox=BBox(-124.73, 24.96, -66.97, 49.37),
        ...     srs="EPSG:4326",
        ...     width=768,
        ...     height=666,
        ... )
        >>> request.service_path
        'topp/wms'
"""

from __future__ import annotations

import dataclasses
from typing import Any, NamedTuple

IMAGE_PNG = "image/png"
SERVICE_EXCEPTION_XML = "application/vnd.ogc.se_xml"
GEOJSON = "application/json"


class BBox(NamedTuple):
    """Rectangular extent as (minx, miny, maxx, maxy)."""

    minx: float
    miny: float
    maxx: float
    maxy: float

    def to_param(self) -> str:
        """Render the extent as a WMS ``BBOX`` value."""
        return ",".join(_format_number(value) for value in self)


def _format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def qualified_name(workspace: str, layer: str) -> str:
    """Return the GeoServer ``workspace:layer`` name."""
    return f"{workspace}:{layer}"


@dataclasses.dataclass
class MapRequest:
    """A WMS map request (``GetMap`` or a related map operation).

    Attributes:
        layers: Value of the ``LAYERS`` parameter.
        bbox: Requested extent, or None for operations that do not need one.
        srs: Spatial reference identifier (e.g. ``EPSG:3857``).
        width: Image width in pixels.
        height: Image height in pixels.
        workspace: Workspace scoping the upstream endpoint, if any.
        styles: Value of the ``STYLES`` parameter (empty means default).
        format: Requested image MIME type.
        transparent: Whether to request a transparent background.
        version: WMS protocol version.
        operation: WMS ``REQUEST`` value.
        crs_param: Name of the reference system parameter (``SRS`` for
            WMS 1.1.x, ``CRS`` for 1.3.0).
        extra: Additional key/value parameters forwarded unchanged.
    """

    layers: str
    bbox: BBox | None
    srs: str | None
    width: int | str
    height: int | str
    workspace: str | None = None
    styles: str = ""
    format: str = IMAGE_PNG
    transparent: bool | str = True
    version: str = "1.1.0"
    operation: str = "GetMap"
    crs_param: str = "SRS"
    extra: dict[str, str] = dataclasses.field(default_factory=dict)

    @property
    def service_path(self) -> str:
        return f"{self.workspace}/wms" if self.workspace else "wms"

    @property
    def is_get_map(self) -> bool:
        return self.operation.lower() == "getmap"


@dataclasses.dataclass
class AttributeFilter:
    """Equality predicate on one feature attribute."""

    name: str
    value: str


@dataclasses.dataclass
class FeatureQuery:
    """A WFS ``GetFeature`` request.

    Attributes:
        type_name: Qualified feature type name.
        workspace: Workspace scoping the upstream endpoint; when None the
            shared ``wfs`` endpoint is used.
        cql_filter: CQL filter expression, already escaped.
        output_format: Requested output format.
        max_features: Optional cap on the number of returned features.
        version: WFS protocol version.
        operation: WFS ``request`` value.
    """

    type_name: str | None
    workspace: str | None = None
    cql_filter: str | None = None
    output_format: str = GEOJSON
    max_features: int | str | None = None
    version: str = "1.0.0"
    operation: str = "GetFeature"

    @property
    def service_path(self) -> str:
        return f"{self.workspace}/ows" if self.workspace else "wfs"


@dataclasses.dataclass
class LegendRequest:
    """A WMS ``GetLegendGraphic`` request."""

    layer: str
    width: int | str
    height: int | str
    format: str = IMAGE_PNG
    version: str = "1.0.0"
    operation: str = "GetLegendGraphic"

    service_path = "wms"


@dataclasses.dataclass
class LayerSummary:
    """Layer entry located in a capabilities document.

    Attributes:
        layer_name: Qualified ``workspace:layer`` name.
        title: Human-readable layer title.
        abstract: Layer abstract text, if the document has one.
        bounding_box: Attributes of the first ``BoundingBox`` element.
    """

    layer_name: str
    title: str
    abstract: str | None
    bounding_box: dict[str, str] | None

    def to_json(self) -> dict[str, Any]:
        return {
            "layerName": self.layer_name,
            "title": self.title,
            "abstract": self.abstract if self.abstract else "No abstract",
            "boundingBox": (
                self.bounding_box
                if self.bounding_box is not None
                else "No bounding box"
            ),
        }

"""App package initializer for the GeoServer gateway.

This package contains a thin HTTP gateway in front of a GeoServer instance.
Inbound requests are mapped onto WMS (GetMap, GetLegendGraphic,
GetCapabilities) and WFS (GetFeature) requests, sent upstream once, and the
upstream answer is relayed or normalized.

- Two call shapes per operation (structured body/path values or flat OGC
  query parameters) share one internal request model
- Outbound calls are bounded by a configurable timeout
- Attribute filters are escaped before they reach the CQL query language
- Service exceptions and capabilities documents are parsed with defusedxml

See module docstrings for details on each route.
"""

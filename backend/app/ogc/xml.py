"""XML parsing of GeoServer service exceptions and capabilities documents.

Upstream XML is parsed with defusedxml so entity expansion and external
references in a hostile or misconfigured upstream cannot be abused. Tags are
compared by local name, which lets the same code read both the namespace-free
WMS 1.1.x documents and the namespaced WMS 1.3.0 / OWS variants.

The capabilities traversal expects exactly this shape::

    <WMT_MS_Capabilities>          (or WMS_Capabilities)
      <Capability>
        <Layer>                    (root layer container)
          <Layer><Name>...</Name><Title>...</Title>...</Layer>
          ...

Nested sublayers below that level are not searched. A well-formed document
that does not follow the shape raises CapabilitiesShapeError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import defusedxml
from defusedxml import ElementTree as defused_et

from app.ogc import models

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element

CAPABILITIES_ROOTS = ("WMT_MS_Capabilities", "WMS_Capabilities")


class XMLParseError(ValueError):
    """Raised when an upstream payload is not well-formed XML."""


class CapabilitiesShapeError(ValueError):
    """Raised when a capabilities document does not have the expected shape."""


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an element tag."""
    return tag.rpartition("}")[2]


def _children(element: Element, name: str) -> list[Element]:
    return [child for child in element if local_name(child.tag) == name]


def _child(element: Element, name: str) -> Element | None:
    for child in element:
        if local_name(child.tag) == name:
            return child
    return None


def _text(element: Element | None) -> str | None:
    if element is None or element.text is None:
        return None
    return element.text.strip() or None


def parse_document(content: bytes | str) -> Element:
    """Parse an XML payload into its root element.

    Args:
        content: Raw XML bytes or text.

    Returns:
        Root element of the document.

    Raises:
        XMLParseError: If the payload is empty, malformed, or uses forbidden
            constructs (entity declarations, external references).
    """
    if not content or not content.strip():
        raise XMLParseError("Empty XML document")
    try:
        return defused_et.fromstring(content)
    except (defused_et.ParseError, defusedxml.DefusedXmlException) as exc:
        raise XMLParseError(str(exc)) from exc


def service_exception_message(content: bytes | str) -> str | None:
    """Extract the first exception message from an OGC exception report.

    Handles WMS ``ServiceExceptionReport/ServiceException`` documents and
    OWS ``ExceptionReport/Exception/ExceptionText`` documents.

    Args:
        content: Raw exception report payload.

    Returns:
        The first non-empty exception message, or None if the document is
        not an exception report or carries no message.

    Raises:
        XMLParseError: If the payload is not well-formed XML.
    """
    root = parse_document(content)
    name = local_name(root.tag)

    if name == "ServiceExceptionReport":
        return _text(_child(root, "ServiceException"))

    if name == "ExceptionReport":
        exception = _child(root, "Exception")
        if exception is not None:
            return _text(_child(exception, "ExceptionText"))

    return None


def _sublayers(root: Element) -> list[Element]:
    if local_name(root.tag) not in CAPABILITIES_ROOTS:
        raise CapabilitiesShapeError(
            f"Unexpected root element {local_name(root.tag)!r}",
        )

    capability = _child(root, "Capability")
    if capability is None:
        raise CapabilitiesShapeError("Missing Capability element")

    container = _child(capability, "Layer")
    if container is None:
        raise CapabilitiesShapeError("Missing top-level Layer element")

    return _children(container, "Layer")


def find_layer(
    content: bytes | str,
    workspace: str,
    layer_name: str,
) -> models.LayerSummary | None:
    """Locate one layer by exact name in a capabilities document.

    Args:
        content: Raw GetCapabilities payload.
        workspace: Workspace the document was requested for; used to build
            the qualified layer name in the result.
        layer_name: Layer ``Name`` to match exactly.

    Returns:
        Summary of the matching layer, or None if no direct sublayer of the
        root layer container has that name.

    Raises:
        XMLParseError: If the payload is not well-formed XML.
        CapabilitiesShapeError: If the document does not follow the
            root/Capability/Layer/Layer structure.
    """
    root = parse_document(content)

    for layer in _sublayers(root):
        if _text(_child(layer, "Name")) != layer_name:
            continue

        bbox = _child(layer, "BoundingBox")
        return models.LayerSummary(
            layer_name=models.qualified_name(workspace, layer_name),
            title=_text(_child(layer, "Title")) or "",
            abstract=_text(_child(layer, "Abstract")),
            bounding_box=dict(bbox.attrib) if bbox is not None else None,
        )

    return None

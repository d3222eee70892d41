"""API router subpackage for the GeoServer gateway.

Each module exposes its own APIRouter for composition in the application's
main FastAPI instance.

Submodules:
    - maps: WMS GetMap image proxy (``/wmservice``).
    - features: WFS GetFeature proxy (``/features``).
    - legends: WMS GetLegendGraphic proxy (``/graphic``).
    - capabilities: Layer lookup in WMS capabilities (``/capabilities``).
"""

"""OGC request model, parameter mapping, and XML parsing.

Submodules:
    - models: Request-scoped dataclasses shared by all call shapes.
    - params: Input adapters and upstream query-parameter serialization.
    - xml: Service-exception and capabilities document parsing.
"""

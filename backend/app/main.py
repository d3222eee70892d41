"""FastAPI application entrypoint and configuration.

This module provides the main FastAPI application factory that sets up
CORS middleware, includes the map, feature, legend and capabilities
routers, and exposes a health check endpoint for monitoring.

Example:
    The application can be run with uvicorn:
        $ uvicorn app.main:app --reload

    Or through the console script, which reads HOST/PORT from settings:
        $ geoserver-gateway
"""

import logging

import fastapi
import uvicorn
from fastapi.middleware import cors

from app.api import capabilities, features, legends, maps
from app.core import config


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application.

    Sets up CORS middleware, includes the gateway routers, and adds a
    health check endpoint. CORS origins are configured from settings.

    Returns:
        Configured FastAPI application instance ready for ASGI server.
    """
    settings = config.get_settings()
    app = fastapi.FastAPI(title="GeoServer Gateway", version="0.1.0")

    app.include_router(maps.router)
    app.include_router(features.router)
    app.include_router(legends.router)
    app.include_router(capabilities.router)

    app.add_middleware(
        cors.CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:  # type: ignore[misc]
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Dictionary with status "ok" if the service is running.
        """
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """Configure logging and serve the application on the configured port."""
    settings = config.get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info(
        "Server is running on port %s, proxying %s",
        settings.port,
        settings.geoserver_base_url,
    )
    uvicorn.run(app, host=settings.host, port=settings.port)

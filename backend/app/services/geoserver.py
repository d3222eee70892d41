"""Outbound HTTP client for the upstream GeoServer.

Every gateway route issues exactly one upstream request through
GeoServerClient. The client joins the configured base URL with a
workspace/service path, lets httpx URL-encode the query parameters, bounds
the call with the configured timeout, and turns every failure into one of
the GeoServerError subclasses so routes can map them to HTTP responses
without touching httpx exceptions directly.

Example:
    Fetch a legend graphic:
        >>> client = GeoServerClient("http://localhost:8080/geoserver", 10)
        >>> response = await client.get("wms", {"REQUEST": "GetLegendGraphic",
        ...                                     "LAYER": "topp:states"})
        >>> response.headers["content-type"]
        'image/png'
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING
from urllib import parse

import fastapi
import httpx

from app.core import config

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


class GeoServerError(Exception):
    """Base class for failures talking to GeoServer."""


class UpstreamStatusError(GeoServerError):
    """GeoServer answered with an error status code."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.status_code = response.status_code
        self.reason = response.reason_phrase
        super().__init__(f"GeoServer returned {self.status_code} {self.reason}")


class UpstreamTimeoutError(GeoServerError):
    """GeoServer did not answer within the configured timeout."""


class UpstreamUnreachableError(GeoServerError):
    """The request was sent but no response was received."""


class RequestSetupError(GeoServerError):
    """The outbound request could not be constructed."""


class GeoServerClient:
    """Thin async client bound to one GeoServer base URL.

    Attributes:
        base_url: GeoServer base URL without trailing slash.
        timeout: Timeout in seconds for a whole request, from connecting to
            reading the last byte of the body.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: GeoServer base URL (e.g. ``http://host/geoserver``).
            timeout: Timeout in seconds for each outbound request.
            transport: Optional httpx transport, used by tests to stand in
                for the network.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def url_for(self, path: str) -> str:
        """Join the base URL with a workspace/service path.

        Characters outside a path segment (``?``, ``#``, ``%``...) are
        percent-encoded so they cannot start a query or fragment.
        """
        return f"{self.base_url}/{parse.quote(path.lstrip('/'), safe='/')}"

    async def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, str],
        *,
        error_status: int = 400,
    ) -> httpx.Response:
        """Send one request to GeoServer.

        Args:
            method: HTTP method.
            path: Path below the base URL, e.g. ``topp/wms``.
            params: Query parameters; encoded by httpx.
            error_status: Lowest status code treated as a failure.

        Returns:
            The upstream response with its body fully read.

        Raises:
            UpstreamStatusError: If the status code is >= error_status.
            UpstreamTimeoutError: If the timeout elapsed.
            RequestSetupError: If the URL or request could not be built.
            UpstreamUnreachableError: If no response was received.
        """
        url = self.url_for(path)
        logger.debug("%s %s params=%s", method, url, dict(params))
        try:
            async with (
                asyncio.timeout(self.timeout),
                httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout),
                    transport=self._transport,
                ) as client,
            ):
                response = await client.request(method, url, params=params)
        except (httpx.TimeoutException, TimeoutError) as exc:
            raise UpstreamTimeoutError(f"Timed out calling {url}") from exc
        except (
            httpx.InvalidURL,
            httpx.UnsupportedProtocol,
            httpx.LocalProtocolError,
        ) as exc:
            raise RequestSetupError(f"Cannot build request to {url}") from exc
        except httpx.RequestError as exc:
            raise UpstreamUnreachableError(f"No response from {url}") from exc

        if response.status_code >= error_status:
            raise UpstreamStatusError(response)

        return response

    async def get(
        self,
        path: str,
        params: Mapping[str, str],
        *,
        error_status: int = 400,
    ) -> httpx.Response:
        return await self.request(
            "GET", path, params, error_status=error_status,
        )

    async def post(
        self,
        path: str,
        params: Mapping[str, str],
        *,
        error_status: int = 400,
    ) -> httpx.Response:
        return await self.request(
            "POST", path, params, error_status=error_status,
        )


def get_client(
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> GeoServerClient:
    """Resolve the GeoServer client dependency.

    Args:
        settings: Application settings (injected via FastAPI Depends).

    Returns:
        Client bound to the configured base URL and timeout.
    """
    return GeoServerClient(
        settings.geoserver_base_url,
        settings.upstream_timeout_seconds,
    )

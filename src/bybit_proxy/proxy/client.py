"""Bybit HTTP client.

This module executes outbound requests against the exchange and turns the
exchange's answer into the response relayed to the caller.
"""

import time
from typing import Optional

import httpx

from bybit_proxy.core.base import BaseClient
from bybit_proxy.core.exceptions import UpstreamNetworkError
from bybit_proxy.core.monitoring import track_upstream_request
from bybit_proxy.models.proxy import OutboundRequest, ProxyResponse


class BybitClient(BaseClient):
    """HTTP client for calls to the Bybit REST API."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        """Initialize the Bybit client.

        Args:
            timeout: Request timeout in seconds, None keeps the httpx default.
        """
        super().__init__(name="Bybit", timeout=timeout)
        self._http: Optional[httpx.AsyncClient] = None

    async def open(self) -> None:
        """Create the pooled HTTP client."""
        if self._http is None:
            kwargs = {}
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            self._http = httpx.AsyncClient(**kwargs)

    async def close(self) -> None:
        """Close the pooled HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def send(self, outbound: OutboundRequest, environment: str) -> ProxyResponse:
        """Execute one outbound request, without retries.

        Non-success statuses are not errors here; they are relayed as-is.

        Args:
            outbound: Request to send.
            environment: Target environment, for logs and metrics.

        Returns:
            ProxyResponse: Upstream status and body with inferred content type.

        Raises:
            UpstreamNetworkError: If the request did not complete.
        """
        await self.open()
        start_time = time.time()

        self._log_request(
            outbound.method,
            outbound.url,
            environment=environment,
            signed="X-BAPI-SIGN" in outbound.headers,
        )

        try:
            response = await self._http.request(
                outbound.method,
                outbound.url,
                headers=outbound.headers,
                content=outbound.body,
            )
        except httpx.TimeoutException as e:
            duration = time.time() - start_time
            track_upstream_request(environment, 0, duration)
            raise UpstreamNetworkError(
                f"Upstream request timed out: {e}" if str(e) else "Upstream request timed out",
                target_url=outbound.url,
                method=outbound.method,
                cause=e,
            )
        except httpx.RequestError as e:
            duration = time.time() - start_time
            track_upstream_request(environment, 0, duration)
            raise UpstreamNetworkError(
                str(e) or type(e).__name__,
                target_url=outbound.url,
                method=outbound.method,
                cause=e,
            )

        duration = time.time() - start_time
        self._log_response(outbound.method, outbound.url, response.status_code, duration)
        track_upstream_request(environment, response.status_code, duration)

        if not response.is_success:
            self.logger.warning(
                "Upstream returned non-success status",
                status_code=response.status_code,
                environment=environment,
            )

        return ProxyResponse.from_upstream(response.status_code, response.text)

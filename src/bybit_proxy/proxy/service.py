"""Proxy service.

This module assembles outbound requests from inbound ones: it builds the
target URL, selects the headers to relay, signs the call and hands it to
the Bybit client.
"""

import time
from typing import Dict, List, Mapping, Optional

from bybit_proxy.core.base import BaseService
from bybit_proxy.core.config import Settings
from bybit_proxy.core.exceptions import BaseAppException, ProxyError
from bybit_proxy.core.monitoring import track_error, track_proxy_request, track_signing
from bybit_proxy.models.proxy import (
    JSON_CONTENT_TYPE,
    Credential,
    Environment,
    IncomingRequest,
    OutboundRequest,
    ProxyResponse,
)

from .client import BybitClient
from .credentials import CredentialStore
from .signer import RequestSigner

# Headers a client sends when it signed the request itself.
PRESIGNED_HEADERS = ("x-bapi-api-key", "x-bapi-timestamp", "x-bapi-sign")
PRESIGNED_OPTIONAL_HEADERS = ("x-bapi-recv-window",)

# Never relayed from the client through the allow-list.
RESERVED_HEADERS = frozenset({"content-type", "user-agent", "host", "content-length"})


class ProxyService(BaseService):
    """Forward inbound requests to the selected Bybit environment."""

    def __init__(
        self,
        credentials: CredentialStore,
        signer: RequestSigner,
        client: BybitClient,
        forward_headers: Optional[List[str]] = None,
        user_agent: Optional[str] = None,
        allow_presigned: bool = True,
    ) -> None:
        super().__init__(name="ProxyService")
        self.credentials = credentials
        self.signer = signer
        self.client = client
        self.forward_headers = [
            h.lower() for h in (forward_headers or [])
            if h.lower() not in RESERVED_HEADERS and not h.lower().startswith("x-bapi-")
        ]
        self.user_agent = user_agent
        self.allow_presigned = allow_presigned

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProxyService":
        return cls(
            credentials=CredentialStore.from_settings(settings),
            signer=RequestSigner(recv_window=settings.recv_window),
            client=BybitClient(timeout=settings.upstream_timeout),
            forward_headers=settings.forward_headers_list,
            user_agent=settings.upstream_user_agent,
            allow_presigned=settings.allow_presigned,
        )

    async def startup(self) -> None:
        await super().startup()
        await self.client.open()

    async def shutdown(self) -> None:
        await self.client.close()
        await super().shutdown()

    def has_presigned_headers(self, headers: Mapping[str, str]) -> bool:
        """Check if request headers carry a client-made signature."""
        return self.allow_presigned and all(headers.get(h) for h in PRESIGNED_HEADERS)

    def is_presigned(self, incoming: IncomingRequest) -> bool:
        """Check if the caller already signed the request itself."""
        return self.has_presigned_headers(incoming.headers)

    def resolve_credential(self, incoming: IncomingRequest, environment: Environment) -> Credential:
        """Look up the credential a request is forwarded with.

        Pre-signed requests never use the proxy's own keys, so they skip the
        credential policy entirely.
        """
        if self.is_presigned(incoming):
            return self.credentials.unsigned(environment)
        return self.credentials.lookup(environment)

    def build_url(self, incoming: IncomingRequest, credential: Credential) -> str:
        """Join base URL, path and query without re-encoding either."""
        url = f"{credential.base_url}{incoming.path.value}"
        if incoming.query_string:
            url = f"{url}?{incoming.query_string}"
        return url

    def build_outbound(self, incoming: IncomingRequest, credential: Credential) -> OutboundRequest:
        """Assemble the signed request for the exchange.

        The body bytes are read once from the inbound body variant and the
        same object is both signed and sent.
        """
        headers: Dict[str, str] = {}
        for name in self.forward_headers:
            value = incoming.headers.get(name)
            if value:
                headers[name] = value

        client_content_type = incoming.headers.get("content-type")
        if incoming.is_bodyless:
            body = None
            if client_content_type:
                headers["Content-Type"] = client_content_type
        else:
            body = incoming.body.content
            headers["Content-Type"] = (
                client_content_type or incoming.body.content_type or JSON_CONTENT_TYPE
            )

        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        if self.is_presigned(incoming):
            for name in PRESIGNED_HEADERS + PRESIGNED_OPTIONAL_HEADERS:
                value = incoming.headers.get(name)
                if value:
                    headers[name.upper()] = value
            mode = "presigned"
        else:
            signed = self.signer.sign(
                incoming.method,
                incoming.query_string,
                body,
                credential,
            )
            if signed is not None:
                headers.update(signed.as_headers())
                mode = "signed"
            else:
                mode = "unsigned"

        track_signing(credential.environment, mode)

        return OutboundRequest(
            method=incoming.method,
            url=self.build_url(incoming, credential),
            headers=headers,
            body=body,
        )

    async def forward(self, incoming: IncomingRequest, credential: Credential) -> ProxyResponse:
        """Forward one request and relay the exchange's answer.

        Args:
            incoming: Inbound request.
            credential: Credential of the selected environment.

        Returns:
            ProxyResponse: Upstream status and body.

        Raises:
            UpstreamNetworkError: If the exchange could not be reached.
            ProxyError: If building or sending the request failed otherwise.
        """
        environment = credential.environment
        start_time = time.time()

        try:
            outbound = self.build_outbound(incoming, credential)
            response = await self.client.send(outbound, environment)
        except BaseAppException:
            track_proxy_request(environment, "error", time.time() - start_time)
            raise
        except Exception as e:
            track_proxy_request(environment, "error", time.time() - start_time)
            track_error(type(e).__name__, "forwarder")
            self.logger.exception("Unexpected error while forwarding", error=str(e))
            raise ProxyError(str(e) or type(e).__name__, cause=e)

        track_proxy_request(environment, "success", time.time() - start_time)
        self.logger.info(
            "Request forwarded",
            method=incoming.method,
            path=incoming.path.value,
            environment=environment,
            status_code=response.status_code,
        )
        return response

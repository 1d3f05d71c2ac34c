"""Proxy router.

This module provides the catch-all FastAPI route that forwards requests
to the exchange environment chosen by the caller.
"""

from fastapi import APIRouter, Depends, Request, Response
import structlog

from bybit_proxy.auth.dependencies import require_proxy_token
from bybit_proxy.core.config import Settings
from bybit_proxy.core.exceptions import RequestTooLargeError
from bybit_proxy.models.proxy import (
    BODYLESS_METHODS,
    EmptyBody,
    Environment,
    HttpMethod,
    IncomingRequest,
    UpstreamPath,
    encode_query,
    parse_body,
)

from .environment import select_environment, strip_query_param
from .service import ProxyService

router = APIRouter()
logger = structlog.get_logger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_proxy_service(request: Request) -> ProxyService:
    """Get the proxy service instance."""
    return request.app.state.proxy_service


def get_environment(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> Environment:
    """Resolve the target environment from header, query or default."""
    return select_environment(
        request.headers.get(settings.env_header),
        request.query_params.get(settings.env_query_param),
        settings.default_environment,
    )


def get_upstream_path(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> UpstreamPath:
    """Extract the exchange path from the undecoded request path."""
    raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
    raw_path = raw_path.split(b"?", 1)[0]
    return UpstreamPath.from_raw_path(
        raw_path,
        settings.route_prefix,
        root_path=request.scope.get("root_path", ""),
    )


async def get_incoming_request(
    request: Request,
    path: UpstreamPath = Depends(get_upstream_path),
    settings: Settings = Depends(get_app_settings),
    service: ProxyService = Depends(get_proxy_service),
) -> IncomingRequest:
    """Capture the inbound request as the forwarder sees it.

    The environment selector parameter is removed from the query string so
    that it is neither sent to nor signed for the exchange. Pre-signed
    requests keep their query untouched, since the client's signature covers
    it. Bodies of GET and HEAD requests are ignored.
    """
    query_string = encode_query(request.scope.get("query_string", b""))
    if not service.has_presigned_headers(request.headers):
        query_string = strip_query_param(query_string, settings.env_query_param)

    if request.method.upper() in BODYLESS_METHODS:
        body = EmptyBody()
    else:
        declared_length = request.headers.get("content-length")
        if declared_length and declared_length.isdigit() and int(declared_length) > settings.max_body_size:
            raise RequestTooLargeError(int(declared_length), settings.max_body_size)

        raw_body = await request.body()
        if len(raw_body) > settings.max_body_size:
            raise RequestTooLargeError(len(raw_body), settings.max_body_size)
        body = parse_body(raw_body, request.headers.get("content-type"))

    return IncomingRequest(
        method=request.method,
        path=path,
        query_string=query_string,
        headers=dict(request.headers),
        body=body,
    )


@router.api_route(
    "/{upstream_path:path}",
    methods=[method.value for method in HttpMethod],
    summary="Forward a request to Bybit",
)
async def forward_request(
    _: None = Depends(require_proxy_token),
    environment: Environment = Depends(get_environment),
    incoming: IncomingRequest = Depends(get_incoming_request),
    service: ProxyService = Depends(get_proxy_service),
) -> Response:
    """Forward a request to the selected Bybit environment.

    The caller's method, path, query and body are passed through; the proxy
    adds the exchange authentication headers and relays the exchange's
    status and body unchanged.

    Args:
        environment: Target environment.
        incoming: Captured inbound request.
        service: Proxy service.

    Returns:
        Response: Upstream status and body with inferred content type.
    """
    structlog.contextvars.bind_contextvars(environment=environment.value)

    credential = service.resolve_credential(incoming, environment)
    proxy_response = await service.forward(incoming, credential)

    return Response(
        content=proxy_response.body_text,
        status_code=proxy_response.status_code,
        media_type=proxy_response.content_type,
    )

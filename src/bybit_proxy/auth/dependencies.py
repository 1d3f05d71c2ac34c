"""Authentication dependencies for FastAPI.

This module provides dependency injection for the proxy token gate.
"""

from typing import Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import structlog

from bybit_proxy.core.exceptions import UnauthorizedError

from .gate import ProxyTokenGate

security = HTTPBearer(auto_error=False)
logger = structlog.get_logger(__name__)


def get_token_gate(request: Request) -> ProxyTokenGate:
    """Get the gate built at startup.

    Returns:
        ProxyTokenGate: Gate stored on the application state.
    """
    return request.app.state.token_gate


async def require_proxy_token(
    request: Request,
    x_proxy_token: Optional[str] = Header(default=None, alias="X-Proxy-Token"),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    gate: ProxyTokenGate = Depends(get_token_gate),
) -> None:
    """Require a valid proxy token for endpoint access.

    The token is read from ``X-Proxy-Token``, falling back to an
    ``Authorization: Bearer`` header.

    Raises:
        UnauthorizedError: If the token does not match.
        ConfigurationError: If no token is configured under the strict policy.
    """
    presented = x_proxy_token
    if presented is None and credentials is not None:
        presented = credentials.credentials

    try:
        gate.authorize(presented)
    except UnauthorizedError:
        logger.warning(
            "Unauthorized proxy access attempt",
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
            token_present=presented is not None,
        )
        raise

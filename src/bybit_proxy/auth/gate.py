"""Proxy token gate.

Validates the shared proxy token every caller has to present before a
request is forwarded with the exchange credentials.
"""

import hmac
from typing import Optional

import structlog

from bybit_proxy.core.config import AuthPolicy, Settings
from bybit_proxy.core.exceptions import ConfigurationError, UnauthorizedError
from bybit_proxy.core.monitoring import track_auth_attempt

logger = structlog.get_logger(__name__)


class ProxyTokenGate:
    """Compare presented tokens against the configured proxy token."""

    def __init__(self, token: Optional[str], policy: AuthPolicy = AuthPolicy.STRICT) -> None:
        """Initialize the gate.

        Args:
            token: Configured proxy token, None when unset.
            policy: Behaviour when no token is configured.
        """
        self._token = token or None
        self.policy = AuthPolicy(policy)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProxyTokenGate":
        token = settings.proxy_token.get_secret_value() if settings.proxy_token else None
        gate = cls(token, settings.auth_policy)
        if not gate.is_configured:
            if gate.policy is AuthPolicy.PERMISSIVE:
                logger.warning("No proxy token configured, every caller is allowed")
            else:
                logger.warning("No proxy token configured, all proxy requests will be refused")
        return gate

    @property
    def is_configured(self) -> bool:
        return self._token is not None

    def authorize(self, presented: Optional[str]) -> None:
        """Validate a presented proxy token.

        Args:
            presented: Token sent by the caller, None when absent.

        Raises:
            ConfigurationError: If no token is configured under the strict policy.
            UnauthorizedError: If the presented token does not match.
        """
        if self._token is None:
            track_auth_attempt("unconfigured")
            if self.policy is AuthPolicy.PERMISSIVE:
                return
            raise ConfigurationError("Proxy token is not configured")

        if presented is None or not hmac.compare_digest(
            presented.encode("utf-8"), self._token.encode("utf-8")
        ):
            track_auth_attempt("failure")
            raise UnauthorizedError()

        track_auth_attempt("success")

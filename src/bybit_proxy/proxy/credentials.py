"""Per-environment exchange credentials."""

from typing import Dict, List, Optional

from pydantic import SecretStr
import structlog

from bybit_proxy.core.config import CredentialPolicy, Settings
from bybit_proxy.core.exceptions import MissingCredentialError
from bybit_proxy.models.proxy import Credential, Environment

logger = structlog.get_logger(__name__)

BASE_URLS: Dict[Environment, str] = {
    Environment.MAINNET: "https://api.bybit.com",
    Environment.DEMO: "https://api-demo-testnet.bybit.com",
}


class CredentialStore:
    """Read-only map of environment to credential, built once at startup."""

    def __init__(
        self,
        credentials: Dict[Environment, Credential],
        policy: CredentialPolicy = CredentialPolicy.STRICT,
    ) -> None:
        self._credentials = dict(credentials)
        self.policy = CredentialPolicy(policy)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialStore":
        """Build the store from application settings.

        A half-configured pair (key without secret or the reverse) is treated
        as missing.
        """
        pairs = {
            Environment.MAINNET: (settings.bybit_mainnet_api_key, settings.bybit_mainnet_api_secret),
            Environment.DEMO: (settings.bybit_demo_api_key, settings.bybit_demo_api_secret),
        }

        credentials = {}
        for environment, (api_key, secret) in pairs.items():
            if bool(api_key) != bool(secret):
                logger.warning(
                    "Incomplete API credentials ignored",
                    environment=environment.value,
                    has_key=bool(api_key),
                    has_secret=bool(secret),
                )
                api_key, secret = None, None
            credentials[environment] = _credential(environment, api_key, secret)

        store = cls(credentials, settings.credential_policy)
        logger.info(
            "Credential store ready",
            policy=store.policy.value,
            signing_environments=store.configured_environments(),
        )
        return store

    def configured_environments(self) -> List[str]:
        """List environments with a complete key/secret pair."""
        return [env.value for env, cred in self._credentials.items() if cred.can_sign]

    def lookup(self, environment: Environment) -> Credential:
        """Get the credential of an environment.

        Raises:
            MissingCredentialError: If the environment cannot sign under the strict policy.
        """
        environment = Environment(environment)
        credential = self._credentials.get(environment) or _credential(environment, None, None)

        if not credential.can_sign:
            if self.policy is CredentialPolicy.STRICT:
                raise MissingCredentialError(environment.value)
            return self.unsigned(environment)

        return credential

    def unsigned(self, environment: Environment) -> Credential:
        """Credential without key material, for requests forwarded unsigned."""
        return _credential(Environment(environment), None, None)


def _credential(
    environment: Environment,
    api_key: Optional[str],
    secret: Optional[SecretStr],
) -> Credential:
    return Credential(
        environment=environment,
        base_url=BASE_URLS[environment],
        api_key=api_key,
        secret=secret,
    )

import pytest

from bybit_proxy.core.config import CredentialPolicy
from bybit_proxy.core.exceptions import ConfigurationError, MissingCredentialError
from bybit_proxy.models.proxy import Environment
from bybit_proxy.proxy.credentials import CredentialStore


def test_lookup_returns_configured_credential(make_settings) -> None:
    store = CredentialStore.from_settings(make_settings())

    credential = store.lookup(Environment.MAINNET)

    assert credential.base_url == "https://api.bybit.com"
    assert credential.api_key == "main-key"
    assert credential.secret.get_secret_value() == "main-secret"
    assert credential.can_sign


def test_base_urls_are_fixed_per_environment(make_settings) -> None:
    store = CredentialStore.from_settings(make_settings(credential_policy="permissive"))

    assert store.lookup(Environment.MAINNET).base_url == "https://api.bybit.com"
    assert store.lookup(Environment.DEMO).base_url == "https://api-demo-testnet.bybit.com"


def test_strict_policy_fails_for_missing_pair(make_settings) -> None:
    store = CredentialStore.from_settings(make_settings())

    with pytest.raises(MissingCredentialError) as exc_info:
        store.lookup(Environment.DEMO)

    assert isinstance(exc_info.value, ConfigurationError)
    assert "demo" in str(exc_info.value)


def test_permissive_policy_returns_unsigned_credential(make_settings) -> None:
    store = CredentialStore.from_settings(make_settings(credential_policy="permissive"))

    credential = store.lookup(Environment.DEMO)

    assert store.policy is CredentialPolicy.PERMISSIVE
    assert credential.api_key is None
    assert credential.secret is None
    assert not credential.can_sign


def test_half_configured_pair_is_treated_as_missing(make_settings) -> None:
    store = CredentialStore.from_settings(
        make_settings(bybit_demo_api_key="demo-key", bybit_demo_api_secret=None)
    )

    assert store.configured_environments() == ["mainnet"]
    with pytest.raises(MissingCredentialError):
        store.lookup(Environment.DEMO)


def test_blank_environment_values_are_missing(make_settings) -> None:
    store = CredentialStore.from_settings(
        make_settings(bybit_mainnet_api_key="", bybit_mainnet_api_secret="  ")
    )

    assert store.configured_environments() == []


def test_unsigned_ignores_policy(make_settings) -> None:
    store = CredentialStore.from_settings(make_settings())

    credential = store.unsigned(Environment.DEMO)

    assert credential.base_url == "https://api-demo-testnet.bybit.com"
    assert not credential.can_sign

import pytest
from pydantic import ValidationError

from bybit_proxy.core.config import AuthPolicy, CredentialPolicy, Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.port == 3000
    assert settings.route_prefix == "/proxy"
    assert settings.env_header == "X-Bybit-Env"
    assert settings.env_query_param == "bybit_env"
    assert settings.default_environment == "mainnet"
    assert settings.recv_window == "5000"
    assert settings.auth_policy is AuthPolicy.STRICT
    assert settings.credential_policy is CredentialPolicy.STRICT
    assert settings.allow_presigned is True
    assert settings.upstream_timeout is None


def test_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("PROXY_TOKEN", "from-env")
    monkeypatch.setenv("BYBIT_DEMO_API_KEY", "demo-key")
    monkeypatch.setenv("BYBIT_DEMO_API_SECRET", "demo-secret")
    monkeypatch.setenv("CREDENTIAL_POLICY", "permissive")
    monkeypatch.setenv("PORT", "8080")

    settings = Settings(_env_file=None)

    assert settings.proxy_token.get_secret_value() == "from-env"
    assert settings.bybit_demo_api_key == "demo-key"
    assert settings.bybit_demo_api_secret.get_secret_value() == "demo-secret"
    assert settings.credential_policy is CredentialPolicy.PERMISSIVE
    assert settings.port == 8080


def test_blank_values_count_as_unset() -> None:
    settings = Settings(_env_file=None, proxy_token="  ", bybit_mainnet_api_key="", bybit_mainnet_api_secret="")

    assert settings.proxy_token is None
    assert settings.bybit_mainnet_api_key is None
    assert settings.bybit_mainnet_api_secret is None


def test_secrets_are_masked_in_repr() -> None:
    settings = Settings(_env_file=None, proxy_token="t0ken", bybit_mainnet_api_secret="s3cret")

    assert "t0ken" not in repr(settings)
    assert "s3cret" not in repr(settings)


@pytest.mark.parametrize("prefix, expected", [("proxy", "/proxy"), ("/api/", "/api"), ("/a/b", "/a/b")])
def test_route_prefix_is_normalized(prefix: str, expected: str) -> None:
    assert Settings(_env_file=None, route_prefix=prefix).route_prefix == expected


def test_default_environment_is_normalized() -> None:
    assert Settings(_env_file=None, default_environment=" Demo ").default_environment == "demo"


@pytest.mark.parametrize(
    "field, value",
    [
        ("route_prefix", "/"),
        ("default_environment", "testnet"),
        ("recv_window", "5s"),
        ("log_level", "verbose"),
        ("log_format", "xml"),
        ("deployment", "qa"),
        ("auth_policy", "lenient"),
    ],
)
def test_invalid_values_are_rejected(field: str, value: str) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_forward_headers_list() -> None:
    settings = Settings(_env_file=None, forward_headers="Accept, X-Custom ,,")

    assert settings.forward_headers_list == ["accept", "x-custom"]


def test_settings_are_frozen() -> None:
    settings = Settings(_env_file=None)

    with pytest.raises(ValidationError):
        settings.port = 1

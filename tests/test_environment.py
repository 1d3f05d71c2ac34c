import pytest

from bybit_proxy.core.exceptions import InvalidEnvironmentError
from bybit_proxy.models.proxy import Environment
from bybit_proxy.proxy.environment import select_environment, strip_query_param


def test_header_wins_over_query() -> None:
    assert select_environment("demo", "mainnet", "mainnet") is Environment.DEMO
    assert select_environment("mainnet", "demo", "demo") is Environment.MAINNET


def test_query_used_when_header_absent() -> None:
    assert select_environment(None, "demo", "mainnet") is Environment.DEMO


def test_default_used_when_both_absent() -> None:
    assert select_environment(None, None, "demo") is Environment.DEMO
    assert select_environment(None, None, Environment.MAINNET) is Environment.MAINNET


def test_values_are_trimmed_and_lowercased() -> None:
    assert select_environment("  DeMo ", None, "mainnet") is Environment.DEMO
    assert select_environment(None, "MAINNET", "demo") is Environment.MAINNET


def test_blank_values_count_as_absent() -> None:
    assert select_environment("   ", "demo", "mainnet") is Environment.DEMO
    assert select_environment("", "", "demo") is Environment.DEMO


@pytest.mark.parametrize("value", ["staging", "testnet", "main", "demo2", "mainnet demo"])
def test_unknown_values_rejected(value: str) -> None:
    with pytest.raises(InvalidEnvironmentError) as exc_info:
        select_environment(value, None, "mainnet")

    assert exc_info.value.value == value
    assert value in str(exc_info.value)
    assert exc_info.value.http_status == 400


def test_invalid_header_is_not_rescued_by_valid_query() -> None:
    with pytest.raises(InvalidEnvironmentError):
        select_environment("staging", "demo", "mainnet")


def test_strip_query_param_keeps_other_pairs_verbatim() -> None:
    query = "category=linear&bybit_env=demo&symbol=BTC%2DUSDT&cursor=a%3D%3D"

    assert strip_query_param(query, "bybit_env") == "category=linear&symbol=BTC%2DUSDT&cursor=a%3D%3D"


def test_strip_query_param_handles_edges() -> None:
    assert strip_query_param("", "bybit_env") == ""
    assert strip_query_param("bybit_env=demo", "bybit_env") == ""
    assert strip_query_param("bybit_env", "bybit_env") == ""
    assert strip_query_param("bybit_envx=1&a=2", "bybit_env") == "bybit_envx=1&a=2"

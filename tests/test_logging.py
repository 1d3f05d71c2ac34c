from bybit_proxy.core.logging import REDACTED, _parse_size, redact_sensitive


def test_credential_fields_are_masked() -> None:
    event = redact_sensitive(
        None,
        "info",
        {"event": "Outgoing request", "api_key": "main-key", "signature": "abc", "method": "GET"},
    )

    assert event["api_key"] == REDACTED
    assert event["signature"] == REDACTED
    assert event["method"] == "GET"


def test_nested_header_mappings_are_masked() -> None:
    event = redact_sensitive(
        None,
        "info",
        {"headers": {"X-BAPI-SIGN": "abc", "X-Proxy-Token": "t", "Accept": "application/json"}},
    )

    assert event["headers"] == {
        "X-BAPI-SIGN": REDACTED,
        "X-Proxy-Token": REDACTED,
        "Accept": "application/json",
    }


def test_empty_values_are_left_alone() -> None:
    assert redact_sensitive(None, "info", {"token": None})["token"] is None


def test_parse_size() -> None:
    assert _parse_size("10MB") == 10 * 1024 * 1024
    assert _parse_size("512kb") == 512 * 1024
    assert _parse_size("2048") == 2048

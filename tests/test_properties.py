"""Property-based checks of signing, token comparison and routing."""

import pytest
from hypothesis import given, strategies as st
from pydantic import SecretStr

from bybit_proxy.auth.gate import ProxyTokenGate
from bybit_proxy.core.exceptions import UnauthorizedError
from bybit_proxy.models.proxy import (
    Credential,
    Environment,
    IncomingRequest,
    RawBody,
    SigningInput,
    UpstreamPath,
)
from bybit_proxy.proxy.client import BybitClient
from bybit_proxy.proxy.credentials import BASE_URLS, CredentialStore
from bybit_proxy.proxy.environment import select_environment
from bybit_proxy.proxy.service import ProxyService
from bybit_proxy.proxy.signer import RequestSigner, compute_signature, signing_payload

from .conftest import FIXED_MILLIS, fixed_clock

query_strings = st.text(
    alphabet="abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_.~%=&",
    max_size=80,
)
tokens = st.text(min_size=1, max_size=40)
env_names = st.sampled_from(["mainnet", "demo", "MAINNET", " Demo "])


def _service() -> ProxyService:
    credential = Credential(
        environment=Environment.MAINNET,
        base_url=BASE_URLS[Environment.MAINNET],
        api_key="main-key",
        secret=SecretStr("main-secret"),
    )
    return ProxyService(
        credentials=CredentialStore({Environment.MAINNET: credential}),
        signer=RequestSigner(clock=fixed_clock),
        client=BybitClient(),
    )


@given(query=query_strings)
def test_get_payload_is_the_query_string(query: str) -> None:
    assert signing_payload("GET", query, None) == query.encode("utf-8")


@given(body=st.binary(max_size=256), method=st.sampled_from(["POST", "PUT", "PATCH", "DELETE"]))
def test_sent_body_is_the_signed_body(body: bytes, method: str) -> None:
    service = _service()
    incoming = IncomingRequest(
        method=method,
        path=UpstreamPath(value="/v5/order/create"),
        body=RawBody(data=body, media_type="application/json"),
    )
    credential = service.resolve_credential(incoming, Environment.MAINNET)

    outbound = service.build_outbound(incoming, credential)

    expected = compute_signature(
        SigningInput(
            timestamp=FIXED_MILLIS,
            api_key="main-key",
            secret=SecretStr("main-secret"),
            recv_window="5000",
            payload=outbound.body,
        )
    )
    assert outbound.body == body
    assert outbound.headers["X-BAPI-SIGN"] == expected


@given(
    timestamp=st.integers(min_value=0, max_value=2**53),
    api_key=st.text(min_size=1, max_size=20),
    payload=st.binary(max_size=64),
)
def test_signature_is_deterministic(timestamp: int, api_key: str, payload: bytes) -> None:
    signing_input = SigningInput(
        timestamp=timestamp,
        api_key=api_key,
        secret=SecretStr("secret"),
        recv_window="5000",
        payload=payload,
    )

    first = compute_signature(signing_input)

    assert first == compute_signature(signing_input)
    assert len(first) == 64
    assert first == first.lower()


@given(payload=st.binary(max_size=64), extra=st.binary(min_size=1, max_size=8))
def test_signature_changes_with_payload(payload: bytes, extra: bytes) -> None:
    base = dict(timestamp=FIXED_MILLIS, api_key="k", secret=SecretStr("s"), recv_window="5000")

    assert compute_signature(SigningInput(payload=payload, **base)) != compute_signature(
        SigningInput(payload=payload + extra, **base)
    )


@given(timestamp=st.integers(min_value=0, max_value=2**53))
def test_signature_changes_with_timestamp(timestamp: int) -> None:
    base = dict(api_key="k", secret=SecretStr("s"), recv_window="5000", payload=b"a=1")

    assert compute_signature(SigningInput(timestamp=timestamp, **base)) != compute_signature(
        SigningInput(timestamp=timestamp + 1, **base)
    )


@given(token=tokens, position=st.integers(min_value=0), replacement=st.text(min_size=1, max_size=1))
def test_gate_rejects_any_single_character_change(token: str, position: int, replacement: str) -> None:
    position %= len(token)
    tampered = token[:position] + replacement + token[position + 1:]
    gate = ProxyTokenGate(token)

    if tampered == token:
        gate.authorize(tampered)
    else:
        with pytest.raises(UnauthorizedError):
            gate.authorize(tampered)


@given(header=env_names, query=env_names)
def test_header_always_beats_query(header: str, query: str) -> None:
    assert select_environment(header, query, "mainnet") == Environment(header.strip().lower())


@given(query=env_names, default=st.sampled_from(list(Environment)))
def test_query_beats_default(query: str, default: Environment) -> None:
    assert select_environment(None, query, default) == Environment(query.strip().lower())

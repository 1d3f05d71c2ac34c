"""Bybit V5 request signing.

The exchange verifies every private call by recomputing an HMAC-SHA256
over ``timestamp + api_key + recv_window + payload``, where the payload is
the query string for GET requests and the exact body bytes otherwise.
Any byte that differs between what is signed here and what is sent makes
the exchange reject the call.
"""

import hashlib
import hmac
import time
from typing import Callable, Optional

from bybit_proxy.models.proxy import (
    BODYLESS_METHODS,
    Credential,
    SignedHeaders,
    SigningInput,
    encode_query,
)


def current_millis() -> int:
    """Current Unix time in whole milliseconds."""
    return int(time.time() * 1000)


def signing_payload(method: str, query_string: str, body: Optional[bytes]) -> bytes:
    """Select the bytes that go into the signature.

    Args:
        method: HTTP method.
        query_string: Query string, with or without leading '?'.
        body: Body bytes that will be sent.

    Returns:
        bytes: Query string as sent on the wire for bodyless methods, body
        bytes otherwise.
    """
    if method.upper() in BODYLESS_METHODS:
        if query_string.startswith("?"):
            query_string = query_string[1:]
        return encode_query(query_string).encode("ascii")
    return body or b""


def compute_signature(signing_input: SigningInput) -> str:
    """Lowercase hex HMAC-SHA256 of the canonical string."""
    return hmac.new(
        signing_input.secret.get_secret_value().encode("utf-8"),
        signing_input.canonical(),
        hashlib.sha256,
    ).hexdigest()


class RequestSigner:
    """Produce Bybit authentication headers for outbound requests."""

    def __init__(self, recv_window: str = "5000", clock: Callable[[], int] = current_millis) -> None:
        """Initialize the signer.

        Args:
            recv_window: Receive window sent with every signed request.
            clock: Source of the millisecond timestamp.
        """
        self.recv_window = recv_window
        self.clock = clock

    def sign(
        self,
        method: str,
        query_string: str,
        body: Optional[bytes],
        credential: Credential,
        recv_window: Optional[str] = None,
    ) -> Optional[SignedHeaders]:
        """Compute the authentication headers of one call.

        Args:
            method: HTTP method.
            query_string: Raw query string as it will be sent.
            body: Body bytes as they will be sent.
            credential: Credential of the target environment.
            recv_window: Overrides the configured receive window.

        Returns:
            Optional[SignedHeaders]: Headers, or None when the credential has
            no key pair and the call goes out unsigned.
        """
        if not credential.can_sign:
            return None

        recv_window = recv_window or self.recv_window
        signing_input = SigningInput(
            timestamp=self.clock(),
            api_key=credential.api_key,
            secret=credential.secret,
            recv_window=recv_window,
            payload=signing_payload(method, query_string, body),
        )

        return SignedHeaders(
            api_key=signing_input.api_key,
            timestamp=str(signing_input.timestamp),
            signature=compute_signature(signing_input),
            recv_window=recv_window,
        )

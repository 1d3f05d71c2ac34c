"""Proxy-related data models.

This module contains Pydantic models for the forwarding pipeline: the
upstream environments and their credentials, the inbound request as the
proxy sees it, the signing input and output, and the outbound request and
relayed response.
"""

import json
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union
from urllib.parse import unquote_to_bytes

from pydantic import Field, SecretStr, field_validator

from bybit_proxy.core.exceptions import InvalidRequestBodyError, ProxyError

from .common import FrozenModel

JSON_CONTENT_TYPE = "application/json"
HTML_CONTENT_TYPE = "text/html"


class Environment(str, Enum):
    """Upstream exchange environment."""

    MAINNET = "mainnet"
    DEMO = "demo"


class HttpMethod(str, Enum):
    """HTTP method enumeration."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


# Verbs that never carry a body; they are signed over the query string.
BODYLESS_METHODS = frozenset({HttpMethod.GET.value, HttpMethod.HEAD.value})

# Printable ASCII the HTTP client sends as-is in a query or path (WHATWG
# percent-encode sets). Everything else goes out percent-encoded.
QUERY_SAFE_BYTES = frozenset(b for b in range(0x20, 0x7F) if b not in b" \"#<>")
PATH_SAFE_BYTES = QUERY_SAFE_BYTES - frozenset(b"?`{}")


class Credential(FrozenModel):
    """Base URL and optional API key pair of one environment."""

    environment: Environment = Field(..., description="Environment this credential belongs to")
    base_url: str = Field(..., description="Exchange base URL")
    api_key: Optional[str] = Field(None, description="Exchange API key")
    secret: Optional[SecretStr] = Field(None, description="Exchange API secret")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v):
        """Validate base URL."""
        return v.rstrip("/")

    @property
    def can_sign(self) -> bool:
        """Check if both key and secret are present."""
        return bool(self.api_key) and self.secret is not None and bool(self.secret.get_secret_value())


class EmptyBody(FrozenModel):
    """Request without a body."""

    kind: Literal["empty"] = "empty"

    @property
    def content(self) -> bytes:
        return b""

    @property
    def content_type(self) -> Optional[str]:
        return None


class JsonBody(FrozenModel):
    """JSON request body.

    The body is parsed only to reject malformed input; ``raw`` holds the bytes
    as received and is what gets both signed and sent.
    """

    kind: Literal["json"] = "json"
    value: Any = Field(..., description="Parsed JSON value")
    raw: bytes = Field(..., description="Body bytes as received")

    @property
    def content(self) -> bytes:
        return self.raw

    @property
    def content_type(self) -> Optional[str]:
        return JSON_CONTENT_TYPE


class RawBody(FrozenModel):
    """Opaque request body of any other media type."""

    kind: Literal["raw"] = "raw"
    data: bytes = Field(..., description="Body bytes as received")
    media_type: Optional[str] = Field(None, description="Client supplied content type")

    @property
    def content(self) -> bytes:
        return self.data

    @property
    def content_type(self) -> Optional[str]:
        return self.media_type


RequestBody = Annotated[Union[EmptyBody, JsonBody, RawBody], Field(discriminator="kind")]


def is_json_media_type(content_type: Optional[str]) -> bool:
    """Check whether a Content-Type header names a JSON media type."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == JSON_CONTENT_TYPE or media_type.endswith("+json")


def parse_body(raw: bytes, content_type: Optional[str]) -> Union[EmptyBody, JsonBody, RawBody]:
    """Classify inbound body bytes into the request body variant.

    Args:
        raw: Body bytes as received.
        content_type: Client Content-Type header, if any.

    Returns:
        The matching body variant.

    Raises:
        InvalidRequestBodyError: If a JSON body does not parse.
    """
    if not raw:
        return EmptyBody()

    if is_json_media_type(content_type):
        try:
            value = json.loads(raw)
        except ValueError as e:
            raise InvalidRequestBodyError(f"Malformed JSON body: {e}", cause=e)
        return JsonBody(value=value, raw=raw)

    return RawBody(data=raw, media_type=content_type)


def _as_bytes(value: Union[bytes, str]) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


def wire_encode(raw: Union[bytes, str], safe: frozenset) -> str:
    """Percent-encode the bytes the HTTP client would not send verbatim.

    Safe bytes, existing ``%XX`` escapes included, are kept unchanged, so the
    result goes on the wire exactly as returned and encoding it again is a
    no-op.
    """
    return "".join(
        chr(byte) if byte in safe else f"%{byte:02X}" for byte in _as_bytes(raw)
    )


def encode_query(raw: Union[bytes, str]) -> str:
    """Wire form of a query string."""
    return wire_encode(raw, QUERY_SAFE_BYTES)


def encode_path(raw: Union[bytes, str]) -> str:
    """Wire form of a request path."""
    return wire_encode(raw, PATH_SAFE_BYTES)


class UpstreamPath(FrozenModel):
    """Path to request on the exchange, taken from the raw inbound path."""

    value: str = Field(..., description="Path starting with '/', in wire form")

    @field_validator("value", mode="before")
    @classmethod
    def validate_value(cls, v):
        """Bring the path into wire form."""
        return encode_path(v)

    @classmethod
    def from_raw_path(
        cls,
        raw_path: Union[bytes, str],
        prefix: str,
        root_path: str = "",
    ) -> "UpstreamPath":
        """Remove the mount point and routing prefix from an undecoded request path.

        Prefix segments are compared after percent-decoding, like the router
        matched them; the remainder keeps its percent-encoding intact.

        Args:
            raw_path: Request path exactly as received.
            prefix: Routing prefix such as ``/proxy``.
            root_path: ASGI root path the application is mounted under.

        Returns:
            UpstreamPath: Remaining path, ``/`` when nothing follows the prefix.

        Raises:
            ProxyError: If the path does not start with the prefix.
        """
        raw_path = _as_bytes(raw_path)

        root = root_path.rstrip("/").encode("utf-8")
        if root and (raw_path == root or raw_path.startswith(root + b"/")):
            raw_path = raw_path[len(root):]

        prefix_segments = prefix.strip("/").split("/")
        segments = raw_path.split(b"/")[1:]
        head = segments[:len(prefix_segments)]
        decoded = [unquote_to_bytes(s).decode("utf-8", "replace") for s in head]
        if decoded != prefix_segments:
            raise ProxyError(
                f"Path '{raw_path.decode('latin-1')}' is outside route prefix '{prefix}'"
            )

        return cls(value=b"/" + b"/".join(segments[len(prefix_segments):]))


class IncomingRequest(FrozenModel):
    """Inbound request as seen by the forwarder."""

    method: str = Field(..., description="HTTP method")
    path: UpstreamPath = Field(..., description="Path relative to the routing prefix")
    query_string: str = Field(default="", description="Query string in wire form, without leading '?'")
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")
    body: RequestBody = Field(default_factory=EmptyBody, description="Request body")

    @field_validator("method")
    @classmethod
    def validate_method(cls, v):
        """Upper-case the method."""
        return v.upper()

    @field_validator("query_string", mode="before")
    @classmethod
    def validate_query_string(cls, v):
        """Drop a leading '?' and bring the rest into wire form."""
        v = _as_bytes(v)
        return encode_query(v[1:] if v.startswith(b"?") else v)

    @field_validator("headers")
    @classmethod
    def normalize_headers(cls, v):
        """Normalize header names to lowercase."""
        return {key.lower(): value for key, value in v.items()}

    @property
    def is_bodyless(self) -> bool:
        """Check if the method is sent without a body."""
        return self.method in BODYLESS_METHODS


class SigningInput(FrozenModel):
    """Everything the exchange signature is computed from."""

    timestamp: int = Field(..., description="Milliseconds since the Unix epoch")
    api_key: str = Field(..., description="Exchange API key")
    secret: SecretStr = Field(..., description="Exchange API secret")
    recv_window: str = Field(..., description="Receive window in milliseconds")
    payload: bytes = Field(default=b"", description="Query string or body bytes")

    def canonical(self) -> bytes:
        """Concatenate timestamp, key, receive window and payload."""
        prefix = f"{self.timestamp}{self.api_key}{self.recv_window}"
        return prefix.encode("utf-8") + self.payload


class SignedHeaders(FrozenModel):
    """Authentication headers attached to an outbound request."""

    api_key: str
    timestamp: str
    signature: str
    recv_window: str

    def as_headers(self) -> Dict[str, str]:
        return {
            "X-BAPI-API-KEY": self.api_key,
            "X-BAPI-TIMESTAMP": self.timestamp,
            "X-BAPI-SIGN": self.signature,
            "X-BAPI-RECV-WINDOW": self.recv_window,
        }


class OutboundRequest(FrozenModel):
    """Request sent to the exchange."""

    method: str = Field(..., description="HTTP method")
    url: str = Field(..., description="Fully qualified target URL")
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")
    body: Optional[bytes] = Field(None, description="Body bytes, None for bodyless methods")


def infer_content_type(body_text: str) -> str:
    """Label a relayed body as JSON when it looks like a JSON object.

    The exchange edge sometimes answers with HTML error pages without a
    matching Content-Type, so the upstream header is not trusted.
    """
    if body_text.strip().startswith("{"):
        return JSON_CONTENT_TYPE
    return HTML_CONTENT_TYPE


class ProxyResponse(FrozenModel):
    """Upstream response relayed to the caller."""

    status_code: int = Field(..., description="Upstream HTTP status code")
    content_type: str = Field(..., description="Inferred content type")
    body_text: str = Field(default="", description="Upstream body as text")

    @classmethod
    def from_upstream(cls, status_code: int, body_text: str) -> "ProxyResponse":
        return cls(
            status_code=status_code,
            content_type=infer_content_type(body_text),
            body_text=body_text,
        )

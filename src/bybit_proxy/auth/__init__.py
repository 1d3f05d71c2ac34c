"""Authentication module.

This module guards the proxy with a shared token, checked before any
request is forwarded.
"""

from .dependencies import get_token_gate, require_proxy_token
from .gate import ProxyTokenGate

__all__ = [
    "ProxyTokenGate",
    "get_token_gate",
    "require_proxy_token",
]

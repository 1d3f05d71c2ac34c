"""Proxy module.

This module provides request proxying functionality to forward signed
requests to the Bybit REST API.
"""

from .client import BybitClient
from .credentials import CredentialStore
from .environment import select_environment
from .router import router
from .service import ProxyService
from .signer import RequestSigner

__all__ = [
    "BybitClient",
    "CredentialStore",
    "ProxyService",
    "RequestSigner",
    "router",
    "select_environment",
]

"""Pydantic models for the application.

This module contains all data models used throughout the application
for request/response validation and serialization.
"""

from .common import BaseModel, ErrorResponse, FrozenModel, HealthResponse
from .proxy import (
    Credential,
    EmptyBody,
    Environment,
    IncomingRequest,
    JsonBody,
    OutboundRequest,
    ProxyResponse,
    RawBody,
    SignedHeaders,
    SigningInput,
    UpstreamPath,
)

__all__ = [
    # Proxy models
    "Credential",
    "EmptyBody",
    "Environment",
    "IncomingRequest",
    "JsonBody",
    "OutboundRequest",
    "ProxyResponse",
    "RawBody",
    "SignedHeaders",
    "SigningInput",
    "UpstreamPath",
    # Common models
    "BaseModel",
    "ErrorResponse",
    "FrozenModel",
    "HealthResponse",
]

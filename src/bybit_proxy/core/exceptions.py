"""Custom exception classes.

This module defines custom exceptions used throughout the application.
Each exception carries the HTTP status the global handlers answer with.
"""

from typing import Any, Dict, Optional


class BaseAppException(Exception):
    """Base exception class for the application.

    All custom exceptions should inherit from this class.
    """

    http_status = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            details: Additional error details.
            cause: Underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the exception."""
        return self.message

    def __repr__(self) -> str:
        """Detailed representation of the exception."""
        return f"{self.__class__.__name__}('{self.message}', details={self.details})"


class ConfigurationError(BaseAppException):
    """Raised when required configuration is absent at request time."""
    pass


class MissingCredentialError(ConfigurationError):
    """Raised when an environment has no API key/secret under the strict policy.

    Attributes:
        environment: Environment whose credentials are missing.
    """

    def __init__(self, environment: str) -> None:
        super().__init__(
            f"No API credentials configured for environment '{environment}'",
            details={"environment": environment},
        )
        self.environment = environment


class AuthenticationError(BaseAppException):
    """Raised when authentication fails."""

    http_status = 401


class UnauthorizedError(AuthenticationError):
    """Raised when the presented proxy token does not match."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ValidationError(BaseAppException):
    """Raised when client input validation fails."""

    http_status = 400


class InvalidEnvironmentError(ValidationError):
    """Raised when the environment selector names an unknown environment.

    Attributes:
        value: The offending selector value.
    """

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Invalid environment '{value}': expected 'mainnet' or 'demo'",
            details={"value": value},
        )
        self.value = value


class InvalidRequestBodyError(ValidationError):
    """Raised when a JSON request body cannot be parsed."""
    pass


class RequestTooLargeError(ValidationError):
    """Raised when the request body exceeds the configured limit."""

    http_status = 413

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"Request body of {size} bytes exceeds limit of {limit} bytes",
            details={"size": size, "limit": limit},
        )


class ExternalServiceError(BaseAppException):
    """Raised when an external service call fails.

    Attributes:
        service: Name of the external service.
    """

    def __init__(
        self,
        message: str,
        service: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            service: Name of the external service.
            details: Additional error details.
            cause: Underlying exception that caused this error.
        """
        super().__init__(message, details, cause)
        self.service = service


class UpstreamNetworkError(ExternalServiceError):
    """Raised when the outbound call to Bybit did not complete.

    Attributes:
        target_url: The target URL that failed.
        method: HTTP method used.
    """

    def __init__(
        self,
        message: str,
        target_url: str,
        method: str,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            service="bybit",
            details={"target_url": target_url, "method": method},
            cause=cause,
        )
        self.target_url = target_url
        self.method = method


class ProxyError(BaseAppException):
    """Raised when forwarding fails for a reason not covered above."""
    pass

"""Base classes shared by the proxy components."""

from typing import Any, Optional

import structlog


class BaseService:
    """Component with an async lifecycle.

    ``async with service:`` runs :meth:`startup` on entry and
    :meth:`shutdown` on exit; the application lifespan drives it.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name or type(self).__name__
        self.logger = structlog.get_logger(self.name)

    async def __aenter__(self) -> "BaseService":
        await self.startup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    async def startup(self) -> None:
        """Acquire resources. Subclasses extend this."""
        self.logger.info("Service started", service=self.name)

    async def shutdown(self) -> None:
        """Release resources. Subclasses extend this."""
        self.logger.info("Service stopped", service=self.name)


class BaseClient:
    """Outbound HTTP client with structured call logging."""

    def __init__(self, name: str, timeout: Optional[float] = None) -> None:
        """Initialize the client.

        Args:
            name: Upstream name, used as logger name prefix.
            timeout: Request timeout in seconds, None for the library default.
        """
        self.name = name
        self.timeout = timeout
        self.logger = structlog.get_logger(f"{name}Client")

    def _log_request(self, method: str, url: str, **fields: Any) -> None:
        self.logger.info("Upstream call", method=method, url=url, timeout=self.timeout, **fields)

    def _log_response(self, method: str, url: str, status_code: int, duration: float) -> None:
        self.logger.info(
            "Upstream answered",
            method=method,
            url=url,
            status_code=status_code,
            duration=f"{duration:.4f}s",
        )

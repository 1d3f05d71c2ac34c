"""Upstream environment selection."""

from typing import Optional, Union

from bybit_proxy.core.exceptions import InvalidEnvironmentError
from bybit_proxy.models.proxy import Environment


def _explicit(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def select_environment(
    header_value: Optional[str],
    query_value: Optional[str],
    default: Union[Environment, str],
) -> Environment:
    """Resolve the environment a request targets.

    An explicit header value wins over the query parameter, which wins over
    the configured default. Blank values count as absent.

    Args:
        header_value: Value of the environment header.
        query_value: Value of the environment query parameter.
        default: Configured default environment.

    Returns:
        Environment: The selected environment.

    Raises:
        InvalidEnvironmentError: If the chosen value is not a known environment.
    """
    chosen = _explicit(header_value) or _explicit(query_value)
    if chosen is None:
        chosen = default.value if isinstance(default, Environment) else str(default)

    try:
        return Environment(chosen.strip().lower())
    except ValueError:
        raise InvalidEnvironmentError(chosen)


def strip_query_param(query_string: str, name: str) -> str:
    """Remove every ``name=...`` pair from a raw query string.

    The remaining pairs keep their order and exact bytes.
    """
    if not query_string:
        return query_string
    kept = [
        pair for pair in query_string.split("&")
        if pair.split("=", 1)[0] != name
    ]
    return "&".join(kept)

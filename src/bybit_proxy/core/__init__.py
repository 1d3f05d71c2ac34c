"""Core infrastructure: configuration, logging, errors, middleware and metrics."""

"""Logging setup."""

from privacy_gate.monitoring.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    sanitize_sensitive_data,
)

__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "sanitize_sensitive_data",
]

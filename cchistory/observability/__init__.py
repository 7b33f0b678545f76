"""Observability helpers."""

from cchistory.observability.otel import (
    initialize,
    shutdown,
    record_command,
    record_parser_failure,
)

__all__ = [
    "initialize",
    "shutdown",
    "record_command",
    "record_parser_failure",
]

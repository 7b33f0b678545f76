"""Streaming reconstruction of shell commands from JSONL conversation logs."""

from cchistory.parsers.stream import (
    CommandStreamParser,
    create_resilient_command_stream,
    list_log_files,
)

__all__ = [
    "CommandStreamParser",
    "create_resilient_command_stream",
    "list_log_files",
]

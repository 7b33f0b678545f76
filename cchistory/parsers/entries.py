"""Line pre-filtering and decoding of JSONL log lines into LogEntry models."""
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from cchistory.models import LogEntry
from cchistory.observability import record_parser_failure

logger = logging.getLogger("cchistory.parser")

# Substrings at least one of which every command-bearing line contains.
_COMMAND_MARKERS = ('"Bash"', '"tool_result"', "<bash-input>")


def line_contains_commands(line: str) -> bool:
    """Cheap check whether ``line`` could hold a Bash call, a tool result or user shell input.

    False positives only cost a wasted decode; a False answer is always safe.
    """
    return any(marker in line for marker in _COMMAND_MARKERS)


def decode_entry(line: str, line_number: int, source: str) -> LogEntry | None:
    """Decode one raw JSONL line.

    Blank lines yield None silently. Malformed lines are reported on the
    ``cchistory.parser`` logger with their line number and file, then yield None
    so the caller can carry on with the next line.
    """
    if not line.strip():
        return None
    try:
        return LogEntry.model_validate(json.loads(line))
    except ValidationError:
        category = "parsing"
    except (ValueError, RecursionError):
        # JSONDecodeError, oversized integers, nesting past the recursion limit
        category = "JSON syntax"
    logger.warning("Error parsing line %s in %s: %s error", line_number, source, category)
    record_parser_failure(category, project_id=Path(source).parent.name)
    return None

"""Pure extraction of command events from decoded log entries."""
from __future__ import annotations

import re
from typing import Any

from cchistory.date_utils import parse_iso_ts, utc_now
from cchistory.models import ContentBlock, LogEntry, PendingCommand, ToolResult

_BASH_INPUT_PATTERN = re.compile(r"<bash-input>(.*?)</bash-input>")
_BASH_TOOL_NAME = "Bash"


def normalize_bash_command(command: str) -> str:
    """Collapse multi-line shell text into one line joined by a literal ``\\n``.

    Each line is trimmed and empty lines are dropped. Applying it twice gives
    the same result as applying it once.
    """
    lines = (line.strip() for line in command.split("\n"))
    return "\\n".join(line for line in lines if line)


def _find_bash_tool_block(content: Any) -> ContentBlock | None:
    if not isinstance(content, list):
        return None
    for block in content:
        if block.type == "tool_use" and block.name == _BASH_TOOL_NAME:
            return block
    return None


def _create_command(
    command: Any,
    entry: LogEntry,
    source: str,
    description: Any = None,
) -> PendingCommand | None:
    if not isinstance(command, str) or not command:
        return None
    return PendingCommand(
        timestamp=parse_iso_ts(entry.timestamp) or utc_now(),
        command=normalize_bash_command(command),
        source=source,
        description=description if isinstance(description, str) and description else None,
        projectPath=entry.workingDirectory,
    )


def extract_bash_command(entry: LogEntry) -> tuple[PendingCommand, str | None] | None:
    """Return the first Bash tool call of an assistant entry and its tool-use id."""
    if entry.kind != "assistant" or not entry.content:
        return None
    block = _find_bash_tool_block(entry.content)
    if block is None:
        return None
    tool_input = block.input if isinstance(block.input, dict) else {}
    command = _create_command(
        tool_input.get("command"),
        entry,
        "bash",
        description=tool_input.get("description"),
    )
    if command is None:
        return None
    return command, block.id or None


def extract_tool_result(entry: LogEntry) -> ToolResult | None:
    """Return the first tool result carried by a user entry, if any."""
    if entry.kind != "user" or not entry.content:
        return None
    # Tool results only ever arrive in block-array form.
    if isinstance(entry.content, str):
        return None
    for block in entry.content:
        if block.type == "tool_result" and block.tool_use_id:
            return ToolResult(tool_use_id=block.tool_use_id, is_error=bool(block.is_error))
    return None


def extract_user_command(entry: LogEntry) -> PendingCommand | None:
    """Return the command a user typed in shell mode (``<bash-input>`` tags)."""
    if entry.kind != "user" or not isinstance(entry.content, str) or not entry.content:
        return None
    match = _BASH_INPUT_PATTERN.search(entry.content)
    if not match:
        return None
    return _create_command(match.group(1).strip(), entry, "user")

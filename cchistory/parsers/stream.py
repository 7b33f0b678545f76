"""Correlate Bash tool calls with their results across streamed JSONL logs.

Commands are produced lazily: a Bash tool call is held in a pending table
until its ``tool_result`` arrives, and emitted as soon as its outcome is known.
Calls that never receive a result are flushed with ``success=True`` at the end
of each file, or earlier when the pending table outgrows its threshold.
"""
from __future__ import annotations

import itertools
import json
import logging
from pathlib import Path
from typing import Iterable, Iterator

from cchistory import config
from cchistory.models import ClaudeCommand, LogEntry, PendingCommand
from cchistory.observability import record_command, record_parser_failure
from cchistory.parsers.entries import decode_entry, line_contains_commands
from cchistory.parsers.extractors import (
    extract_bash_command,
    extract_tool_result,
    extract_user_command,
)

logger = logging.getLogger("cchistory.parser")


def list_log_files(project_dir: Path | str, extension: str | None = None) -> list[Path]:
    """Return the project's log files, oldest modification time first.

    Raises OSError when the directory itself cannot be read. Files that vanish
    before they can be stat'ed are logged and left out.
    """
    suffix = extension or config.LOG_EXTENSION
    stamped: list[tuple[float, str, Path]] = []
    for path in Path(project_dir).iterdir():
        if not path.name.endswith(suffix):
            continue
        try:
            stamped.append((path.stat().st_mtime, path.name, path))
        except OSError as exc:
            logger.error("Error reading file %s: %s", path, exc)
    stamped.sort(key=lambda item: (item[0], item[1]))
    return [path for _, _, path in stamped]


class CommandStreamParser:
    """Streaming command reconstruction for one project or file traversal.

    The pending table is owned by this instance; use one parser per traversal.
    """

    def __init__(self, max_pending_entries: int | None = None):
        self.max_pending_entries = max_pending_entries or config.PENDING_FLUSH_THRESHOLD
        self._pending: dict[str, PendingCommand] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def create_project_stream(self, project_dir: Path | str) -> Iterator[ClaudeCommand]:
        """Yield commands from every log file in ``project_dir`` in chronological order."""
        try:
            files = list_log_files(project_dir)
        except OSError as exc:
            logger.error("Error reading project directory %s: %s", project_dir, exc)
            record_parser_failure("directory read", project_id=Path(project_dir).name)
            return

        for path in files:
            yield from self.create_file_stream(path)

    def create_file_stream(self, file_path: Path | str) -> Iterator[ClaudeCommand]:
        """Yield commands from a single log file.

        The file handle is released when the stream is exhausted, fails, or is
        closed early by the consumer.
        """
        path = Path(file_path)
        try:
            with open(path, encoding="utf-8", errors="replace") as handle:
                yield from self.process_lines(handle, str(path))
        except OSError as exc:
            logger.error("Error reading file %s: %s", path, exc)
            record_parser_failure("file read", project_id=path.parent.name)

        yield from self.flush_pending_commands()

    def process_lines(self, lines: Iterable[str], source: str) -> Iterator[ClaudeCommand]:
        """Run raw lines through the classifier, decoder and correlation state."""
        for line_number, line in enumerate(lines, start=1):
            if line.strip() and line_contains_commands(line):
                entry = decode_entry(line, line_number, source)
                if entry is not None:
                    yield from self.process_entry(entry)

            if line_number % self.max_pending_entries == 0:
                yield from self._cleanup_old_pending_commands()

    def process_entry(self, entry: LogEntry) -> Iterator[ClaudeCommand]:
        """Apply one decoded entry to the pending table, yielding resolved commands."""
        bash = extract_bash_command(entry)
        if bash is not None:
            command, tool_use_id = bash
            if tool_use_id:
                self._pending[tool_use_id] = command
            else:
                # Nothing to correlate against.
                yield self._emit(command.resolve(True))

        result = extract_tool_result(entry)
        if result is not None:
            pending = self._pending.pop(result.tool_use_id, None)
            if pending is not None:
                yield self._emit(pending.resolve(not result.is_error))

        user_command = extract_user_command(entry)
        if user_command is not None:
            yield self._emit(user_command.resolve(True))

    def flush_pending_commands(self) -> Iterator[ClaudeCommand]:
        """Emit every pending command as successful and empty the table."""
        pending = list(self._pending.values())
        self._pending.clear()
        for command in pending:
            yield self._emit(command.resolve(True))

    def _cleanup_old_pending_commands(self) -> Iterator[ClaudeCommand]:
        # Flushes the whole table, not just the oldest entries.
        if len(self._pending) > self.max_pending_entries:
            logger.debug("Flushing %s unmatched pending commands", len(self._pending))
            yield from self.flush_pending_commands()

    @staticmethod
    def _emit(command: ClaudeCommand) -> ClaudeCommand:
        record_command(command.source, command.success)
        return command

    def extract_project_root(
        self,
        project_dir: Path | str,
        max_lines: int | None = None,
    ) -> str | None:
        """Return the first ``cwd`` recorded near the top of any of the project's logs."""
        limit = max_lines or config.ROOT_SCAN_MAX_LINES
        try:
            files = list_log_files(project_dir)
        except OSError as exc:
            logger.debug("Cannot scan %s for a project root: %s", project_dir, exc)
            return None

        for path in files:
            try:
                cwd = _extract_cwd_from_file(path, limit)
            except OSError as exc:
                logger.debug("Skipping %s while scanning for a project root: %s", path, exc)
                continue
            if cwd:
                return cwd
        return None


def _extract_cwd_from_file(path: Path, max_lines: int) -> str | None:
    with open(path, encoding="utf-8", errors="replace") as handle:
        for line in itertools.islice(handle, max_lines):
            try:
                entry = json.loads(line)
            except (ValueError, RecursionError):
                continue
            if isinstance(entry, dict):
                cwd = entry.get("cwd")
                if isinstance(cwd, str) and cwd:
                    return cwd
    return None


def create_resilient_command_stream(project_dir: Path | str) -> Iterator[ClaudeCommand]:
    """Yield a project's commands with a fresh parser, never raising to the consumer."""
    parser = CommandStreamParser()
    try:
        yield from parser.create_project_stream(project_dir)
    except Exception as exc:  # noqa: BLE001
        logger.error("Fatal error in command stream for %s: %s", project_dir, exc)

#!/usr/bin/env python3
"""Print the shell commands Claude Code ran for a project.

Usage:
  cchistory                      # commands for the current directory's project
  cchistory ~/code/myproject --limit 20
  cchistory --global --json
  cchistory --list-projects
"""
from __future__ import annotations

import argparse
import collections
import logging
import sys
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from cchistory import __version__, config
from cchistory.models import ClaudeCommand
from cchistory.observability import initialize as initialize_observability, shutdown as shutdown_observability
from cchistory.parsers.stream import create_resilient_command_stream
from cchistory.project_manager import ProjectManager, project_manager

logger = logging.getLogger("cchistory.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cchistory",
        description="Get shell commands from Claude Code conversation history.",
    )
    parser.add_argument("project", nargs="?", default=".", help="Project directory or its log directory")
    parser.add_argument("--global", dest="all_projects", action="store_true", help="Read every project's history")
    parser.add_argument("--limit", type=int, default=0, help="Only print the last N commands")
    parser.add_argument("--json", action="store_true", help="Print one JSON object per command")
    parser.add_argument("--list-projects", action="store_true", help="List known projects and exit")
    parser.add_argument("--projects-dir", type=Path, default=None, help=argparse.SUPPRESS)
    parser.add_argument("--verbose", action="store_true", help="Log parse diagnostics to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _last(commands: Iterable[ClaudeCommand], limit: int) -> Iterator[ClaudeCommand]:
    if limit > 0:
        return iter(collections.deque(commands, maxlen=limit))
    return iter(commands)


def _format(command: ClaudeCommand, as_json: bool) -> str:
    if as_json:
        return command.model_dump_json()
    return command.command


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
    initialize_observability()
    manager = ProjectManager(args.projects_dir) if args.projects_dir else project_manager

    try:
        if args.list_projects:
            for project in manager.list_projects():
                print(f"{project.rootPath or project.id}\t{project.sessionCount}\t{project.updatedAt}")
            return 0

        if args.all_projects:
            commands: Iterable[ClaudeCommand] = manager.iter_all_commands()
        else:
            log_dir = manager.find_project_dir(args.project)
            if log_dir is None:
                print(f"No Claude Code history found for {Path(args.project).resolve()}", file=sys.stderr)
                return 1
            logger.debug("Reading project logs from %s", log_dir)
            commands = create_resilient_command_stream(log_dir)

        for command in _last(commands, args.limit):
            print(_format(command, args.json))
        return 0
    finally:
        shutdown_observability()


if __name__ == "__main__":
    sys.exit(main())

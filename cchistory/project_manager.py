"""Locate Claude Code's per-project log directories."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Optional

from cchistory import config
from cchistory.date_utils import file_modified_at
from cchistory.models import ClaudeCommand, Project
from cchistory.parsers.stream import (
    CommandStreamParser,
    create_resilient_command_stream,
    list_log_files,
)

logger = logging.getLogger("cchistory.projects")

_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9]")


def encode_project_path(path: Path | str) -> str:
    """Return the log directory name Claude Code uses for a working directory."""
    return _UNSAFE_PATH_CHARS.sub("-", str(path))


class ProjectManager:
    """Read-only view over the projects directory (``~/.claude/projects``)."""

    def __init__(self, projects_dir: Path):
        self.projects_dir = Path(projects_dir)

    def list_projects(self) -> list[Project]:
        """Return every project log directory, least recently active first."""
        try:
            candidates = [p for p in self.projects_dir.iterdir() if p.is_dir()]
        except OSError as e:
            logger.error(f"Failed to read projects directory {self.projects_dir}: {e}")
            return []

        projects: list[Project] = []
        parser = CommandStreamParser()
        for log_dir in candidates:
            try:
                files = list_log_files(log_dir)
            except OSError as e:
                logger.error(f"Failed to read project {log_dir.name}: {e}")
                continue
            projects.append(
                Project(
                    id=log_dir.name,
                    logDir=str(log_dir),
                    rootPath=parser.extract_project_root(log_dir),
                    sessionCount=len(files),
                    updatedAt=file_modified_at(files[-1] if files else log_dir),
                )
            )

        projects.sort(key=lambda p: (p.updatedAt, p.id))
        return projects

    def find_project_dir(self, path: Path | str) -> Optional[Path]:
        """Resolve a working directory (or a log directory) to its log directory."""
        target = Path(path).expanduser()
        try:
            if target.is_dir() and list_log_files(target):
                return target
        except OSError as e:
            logger.debug(f"Cannot list logs in {target}: {e}")

        resolved = target.resolve()
        encoded = self.projects_dir / encode_project_path(resolved)
        if encoded.is_dir():
            return encoded

        for project in self.list_projects():
            if project.rootPath and Path(project.rootPath) == resolved:
                return Path(project.logDir)
        return None

    def iter_all_commands(self) -> Iterator[ClaudeCommand]:
        """Yield the command history of every project, one project after another."""
        for project in self.list_projects():
            yield from create_resilient_command_stream(project.logDir)


project_manager = ProjectManager(config.PROJECTS_DIR)

"""Pydantic models for conversation log entries and recovered commands."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ── Log entry models (wire format written by Claude Code) ───────────


class ContentBlock(BaseModel):
    """One typed block of a message's content array.

    Only ``tool_use`` and ``tool_result`` blocks matter here; every other block
    type is kept but ignored by the extractors.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Optional[str] = None
    id: Optional[str] = None
    name: Optional[str] = None
    input: Any = None
    tool_use_id: Optional[str] = None
    is_error: Optional[bool] = None


class LogMessage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    content: Union[str, list[ContentBlock], None] = None

    @field_validator("content", mode="before")
    @classmethod
    def _drop_non_object_blocks(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [block for block in value if isinstance(block, dict)]
        return value


class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    kind: Optional[str] = Field(default=None, alias="type")  # "assistant" | "user" | other
    timestamp: Optional[str] = None
    workingDirectory: Optional[str] = Field(default=None, alias="cwd")
    message: Optional[LogMessage] = None

    @property
    def content(self) -> Union[str, list[ContentBlock], None]:
        return self.message.content if self.message else None


class ToolResult(BaseModel):
    tool_use_id: str
    is_error: bool = False


# ── Command models ──────────────────────────────────────────────────


class ClaudeCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    command: str
    source: Literal["bash", "user"] = "bash"
    success: bool
    description: Optional[str] = None
    projectPath: Optional[str] = None


class PendingCommand(BaseModel):
    """A command whose outcome is not known yet."""

    timestamp: datetime
    command: str
    source: Literal["bash", "user"] = "bash"
    success: Optional[bool] = None
    description: Optional[str] = None
    projectPath: Optional[str] = None

    def resolve(self, success: bool) -> ClaudeCommand:
        self.success = success
        return ClaudeCommand(
            timestamp=self.timestamp,
            command=self.command,
            source=self.source,
            success=success,
            description=self.description,
            projectPath=self.projectPath,
        )


# ── Project models ──────────────────────────────────────────────────


class Project(BaseModel):
    id: str
    logDir: str
    rootPath: Optional[str] = None
    sessionCount: int = 0
    updatedAt: str = ""

"""Recover shell commands from Claude Code conversation logs."""

__version__ = "0.2.0"

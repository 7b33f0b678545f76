"""cchistory configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default

# Claude Code keeps one log directory per project under <claude dir>/projects
CLAUDE_DIR = Path(os.getenv("CCHISTORY_CLAUDE_DIR", str(Path.home() / ".claude"))).expanduser()
PROJECTS_DIR = CLAUDE_DIR / "projects"
LOG_EXTENSION = os.getenv("CCHISTORY_LOG_EXTENSION", ".jsonl")

# Stream parser tuning
PENDING_FLUSH_THRESHOLD = max(1, _env_int("CCHISTORY_PENDING_FLUSH_THRESHOLD", 100))
ROOT_SCAN_MAX_LINES = max(1, _env_int("CCHISTORY_ROOT_SCAN_MAX_LINES", 10))

# Logging
LOG_LEVEL = os.getenv("CCHISTORY_LOG_LEVEL", "WARNING").upper()

# Telemetry
OTEL_ENABLED = _env_bool("CCHISTORY_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("CCHISTORY_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("CCHISTORY_OTEL_SERVICE_NAME", "cchistory")
PROM_PORT = _env_int("CCHISTORY_PROM_PORT", 0)

"""Exception types surfaced to the CLI, REPL and HTTP API."""

from pathlib import Path


class CcqError(Exception):
    """Base class for errors reported to the user as ``Error: <message>``."""


class ConfigError(CcqError):
    """Configuration could not be determined (e.g. no home directory)."""


class NoSessionsError(CcqError):
    """Discovery found no session or agent files to query."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path) if path else Path()
        super().__init__(f"No JSONL files found in {path}")


class QueryError(CcqError):
    """A single statement failed in the engine."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Database error: {message}")

"""Process-wide configuration, probed from the environment once at startup."""

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

HISTORY_FILE = ".cc_query_history"


def _default_max_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass(frozen=True)
class Settings:
    """Filesystem roots and tunables.

    Built once via from_env() and passed explicitly to discovery and the REPL,
    so tests can point everything at a temporary directory.
    """

    home_dir: Path | None
    project_base_dir: Path | None = None
    history_file: Path | None = None
    max_workers: int = 4

    @property
    def claude_dir(self) -> Path:
        return self.require_home() / ".claude"

    @property
    def projects_dir(self) -> Path:
        """Base directory holding one folder per project (~/.claude/projects)."""
        return self.claude_dir / "projects"

    def require_home(self) -> Path:
        if self.home_dir is None:
            raise ConfigError("No home directory found")
        return self.home_dir

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        try:
            home_dir: Path | None = Path.home()
        except RuntimeError:
            home_dir = None

        project_base = env.get("CLAUDE_PROJECT_DIR")

        history = env.get("CCQ_HISTORY_FILE")
        if history:
            history_file: Path | None = Path(history).expanduser()
        elif home_dir is not None:
            history_file = home_dir / HISTORY_FILE
        else:
            history_file = None

        workers_raw = env.get("CCQ_MAX_WORKERS")
        if workers_raw:
            try:
                max_workers = int(workers_raw)
            except ValueError as e:
                raise ConfigError(f"Invalid CCQ_MAX_WORKERS: {workers_raw!r}") from e
            if max_workers < 1:
                raise ConfigError(f"Invalid CCQ_MAX_WORKERS: {workers_raw!r}")
        else:
            max_workers = _default_max_workers()

        return cls(
            home_dir=home_dir,
            project_base_dir=Path(project_base) if project_base else None,
            history_file=history_file,
            max_workers=max_workers,
        )

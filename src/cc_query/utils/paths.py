"""Project path resolution and slug utilities."""

import os
from pathlib import Path

from ..config import Settings


def resolve_project_path(path: str, settings: Settings) -> Path:
    """Resolve a user-supplied project path to an absolute path.

    - ``~`` and ``~/...`` expand to the home directory
    - Relative paths resolve against CLAUDE_PROJECT_DIR, else the cwd
    """
    if path == "~":
        resolved = settings.require_home()
    elif path.startswith("~/"):
        resolved = settings.require_home() / path[2:]
    else:
        resolved = Path(path)

    if not resolved.is_absolute():
        base_dir = settings.project_base_dir or Path.cwd()
        resolved = base_dir / resolved

    return Path(os.path.normpath(resolved))


def get_project_slug(path: Path | str) -> str:
    """Replace ``/`` and ``.`` with ``-`` (/home/u/my.app -> -home-u-my-app)."""
    return str(path).replace("/", "-").replace(".", "-")


def resolve_project_dir(path: str, settings: Settings) -> Path:
    """Map a project path to its log directory under the projects root."""
    project_path = resolve_project_path(path, settings)
    return settings.projects_dir / get_project_slug(project_path)

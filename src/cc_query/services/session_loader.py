"""Session file discovery and glob pattern generation.

Layout under the projects root:

    {project_slug}/{session_id}.jsonl                          main session
    {project_slug}/{session_id}/subagents/agent-{id}.jsonl     sub-agent

DuckDB reads the files itself; discovery only counts them and produces the
glob pattern(s) the views are built over.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import reduce
from pathlib import Path
from typing import NamedTuple

from loguru import logger

from ..config import Settings
from ..utils.paths import resolve_project_dir

SUBAGENTS_DIR = "subagents"
AGENT_PREFIX = "agent-"
JSONL_SUFFIX = ".jsonl"


@dataclass(frozen=True)
class FilePattern:
    """One glob, or several disjoint globs, for DuckDB to read.

    Build with single() or multiple(); render() is the only way the pattern
    reaches SQL.
    """

    globs: tuple[str, ...]
    is_multiple: bool = False

    @classmethod
    def single(cls, glob: str) -> "FilePattern":
        return cls((glob,))

    @classmethod
    def multiple(cls, globs: list[str] | tuple[str, ...]) -> "FilePattern":
        return cls(tuple(globs), is_multiple=True)

    @property
    def is_empty(self) -> bool:
        return not any(self.globs)

    def render(self) -> str:
        """Render as a DuckDB string literal or list of literals."""
        quoted = [_quote(g) for g in self.globs]
        if self.is_multiple:
            return f"[{', '.join(quoted)}]"
        return quoted[0]

    def __str__(self) -> str:
        return self.render()


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


EMPTY_PATTERN = FilePattern.single("")


@dataclass(frozen=True)
class SessionInfo:
    """Counts and pattern for the discovered session files."""

    session_count: int
    agent_count: int
    project_count: int
    file_pattern: FilePattern

    @property
    def is_empty(self) -> bool:
        return self.session_count == 0 and self.agent_count == 0


def _empty_info(project_count: int) -> SessionInfo:
    return SessionInfo(0, 0, project_count, EMPTY_PATTERN)


class FileCounts(NamedTuple):
    """Result of one directory walk."""

    sessions: int = 0
    agents: int = 0
    total_jsonl: int = 0

    def merge(self, other: "FileCounts") -> "FileCounts":
        return FileCounts(
            self.sessions + other.sessions,
            self.agents + other.agents,
            self.total_jsonl + other.total_jsonl,
        )


def _log_walk_error(err: OSError) -> None:
    logger.debug(f"Skipping unreadable entry {err.filename}: {err.strerror}")


def walk_and_count(root: Path, session_filter: str | None = None) -> FileCounts:
    """Count session, agent and total JSONL files under root in one pass.

    An agent file lives directly in a ``subagents`` directory and is named
    ``agent-*``. With a filter, sessions match on their own file name while
    agents match on the session directory that owns their ``subagents``
    folder. Unreadable directories are skipped and logged at debug level.
    """
    sessions = agents = total_jsonl = 0

    for dirpath, _dirnames, filenames in root.walk(on_error=_log_walk_error):
        jsonl_files = [name for name in filenames if name.endswith(JSONL_SUFFIX)]
        if not jsonl_files:
            continue

        # The root itself may be a subagents folder
        in_subagents_dir = dirpath.name == SUBAGENTS_DIR
        under_subagents = in_subagents_dir or SUBAGENTS_DIR in dirpath.relative_to(root).parts
        # {session_id}/subagents/agent-*.jsonl
        owner = dirpath.parent.name if in_subagents_dir else ""

        for name in jsonl_files:
            total_jsonl += 1
            is_agent_name = name.startswith(AGENT_PREFIX)

            if in_subagents_dir and is_agent_name:
                if session_filter is None or owner.startswith(session_filter):
                    agents += 1
            elif not is_agent_name and not under_subagents:
                if session_filter is None or name.startswith(session_filter):
                    sessions += 1

    return FileCounts(sessions, agents, total_jsonl)


def get_all_project_dirs(settings: Settings) -> list[Path]:
    """List project directories under the projects root (sorted by name)."""
    base = settings.projects_dir
    if not base.is_dir():
        return []
    try:
        return sorted(p for p in base.iterdir() if p.is_dir())
    except OSError as e:
        logger.debug(f"Could not list {base}: {e}")
        return []


def build_file_pattern(root: Path | str, session_filter: str | None, agent_count: int) -> FilePattern:
    """Glob(s) selecting the matching files under root.

    The session glob and the sub-agent glob never match the same file.
    """
    root = str(root)
    if session_filter is None:
        return FilePattern.single(f"{root}/**/*{JSONL_SUFFIX}")

    session_glob = f"{root}/{session_filter}*{JSONL_SUFFIX}"
    if agent_count == 0:
        return FilePattern.single(session_glob)
    agent_glob = f"{root}/{session_filter}*/{SUBAGENTS_DIR}/*{JSONL_SUFFIX}"
    return FilePattern.multiple([session_glob, agent_glob])


def get_session_files_data_dir(data_dir: Path, session_filter: str | None = None) -> SessionInfo:
    """Discover files in a directory used directly as the data source."""
    counts = walk_and_count(data_dir, session_filter)
    logger.debug(f"Walked {data_dir}: {counts}")

    if counts.sessions == 0 and counts.agents == 0:
        if counts.total_jsonl == 0:
            return _empty_info(project_count=0)
        # JSONL files with non-standard names: query all of them as sessions
        return SessionInfo(
            session_count=counts.total_jsonl,
            agent_count=0,
            project_count=1,
            file_pattern=FilePattern.single(f"{data_dir}/**/*{JSONL_SUFFIX}"),
        )

    return SessionInfo(
        session_count=counts.sessions,
        agent_count=counts.agents,
        project_count=1,
        file_pattern=build_file_pattern(data_dir, session_filter, counts.agents),
    )


def get_session_files_project(project_dir: Path, session_filter: str | None = None) -> SessionInfo:
    """Discover files in one project's log directory."""
    if not project_dir.is_dir():
        logger.debug(f"Project directory does not exist: {project_dir}")
        return _empty_info(project_count=1)

    counts = walk_and_count(project_dir, session_filter)
    logger.debug(f"Walked {project_dir}: {counts}")

    if counts.sessions == 0:
        return _empty_info(project_count=1)

    return SessionInfo(
        session_count=counts.sessions,
        agent_count=counts.agents,
        project_count=1,
        file_pattern=build_file_pattern(project_dir, session_filter, counts.agents),
    )


def get_session_files_all_projects(settings: Settings, session_filter: str | None = None) -> SessionInfo:
    """Discover files across every project, walking projects in parallel."""
    base = settings.projects_dir
    project_dirs = get_all_project_dirs(settings)

    counts = FileCounts()
    if project_dirs:
        with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
            results = pool.map(lambda d: walk_and_count(d, session_filter), project_dirs)
            counts = reduce(FileCounts.merge, results, FileCounts())
    logger.debug(f"Walked {len(project_dirs)} project(s) under {base}: {counts}")

    if counts.sessions == 0:
        return _empty_info(project_count=0)

    if session_filter is None:
        file_pattern = FilePattern.single(f"{base}/*/**/*{JSONL_SUFFIX}")
    else:
        file_pattern = build_file_pattern(base / "*", session_filter, counts.agents)

    return SessionInfo(
        session_count=counts.sessions,
        agent_count=counts.agents,
        project_count=len(project_dirs),
        file_pattern=file_pattern,
    )


def get_session_files(
    settings: Settings,
    project_path: str | None = None,
    session_filter: str | None = None,
    data_dir: Path | None = None,
) -> SessionInfo:
    """Discover session files for one of the three addressing modes.

    A data directory wins over a project path; with neither, every project
    under the projects root is searched.
    """
    if data_dir is not None:
        return get_session_files_data_dir(data_dir, session_filter)
    if project_path is None:
        return get_session_files_all_projects(settings, session_filter)
    return get_session_files_project(resolve_project_dir(project_path, settings), session_filter)


def searched_path(
    settings: Settings,
    project_path: str | None = None,
    data_dir: Path | None = None,
) -> Path:
    """The directory a discovery call searched, for error reporting."""
    if data_dir is not None:
        return data_dir
    if project_path is None:
        return settings.projects_dir
    return resolve_project_dir(project_path, settings)

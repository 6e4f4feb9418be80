from pathlib import Path

import orjson
import pytest

from cc_query.config import Settings
from cc_query.services.database import QuerySession

SESSION_ID = "11111111-1111-4111-8111-111111111111"
OTHER_SESSION_ID = "22222222-2222-4222-8222-222222222222"
AGENT_ID = "abc123"
PROJECT_SLUG = "-work-demo"


def _write_jsonl(path: Path, records: list[dict]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        for record in records:
            f.write(orjson.dumps(record))
            f.write(b"\n")
    return path


def _touch(root: Path, relative: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{}\n")
    return path


def _uuid(n: int) -> str:
    return f"00000000-0000-4000-8000-{n:012d}"


def _session_records(session_id: str = SESSION_ID) -> list[dict]:
    """One main session: human prompt, tool calls, tool result, meta, system, summary."""
    base = {"sessionId": session_id, "cwd": "/work/demo", "gitBranch": "main", "version": "2.0.0"}
    return [
        {
            **base,
            "type": "user",
            "uuid": _uuid(1),
            "parentUuid": None,
            "timestamp": "2024-01-01T12:00:00.123Z",
            "isMeta": False,
            "message": {"role": "user", "content": "List the files please"},
        },
        {
            **base,
            "type": "assistant",
            "uuid": _uuid(2),
            "parentUuid": _uuid(1),
            "timestamp": "2024-01-01T12:00:05Z",
            "requestId": "req_1",
            "message": {
                "role": "assistant",
                "model": "claude-sonnet-4",
                "stop_reason": "tool_use",
                "content": [
                    {"type": "text", "text": "Sure"},
                    {
                        "type": "tool_use",
                        "id": "toolu_1",
                        "name": "Bash",
                        "input": {"command": "ls -la", "description": "List files", "timeout": 5000},
                    },
                    {"type": "tool_use", "id": "toolu_2", "name": "Read", "input": {"file_path": "/work/demo/a.txt"}},
                ],
                "usage": {
                    "input_tokens": 10,
                    "output_tokens": 20,
                    "cache_read_input_tokens": 2,
                    "cache_creation_input_tokens": 5,
                },
            },
        },
        {
            **base,
            "type": "user",
            "uuid": _uuid(3),
            "parentUuid": _uuid(2),
            "timestamp": "2024-01-01T12:00:06Z",
            "sourceToolAssistantUUID": _uuid(2),
            "toolUseResult": {"durationMs": 42},
            "message": {
                "role": "user",
                "content": [{"type": "tool_result", "tool_use_id": "toolu_1", "content": "a.txt", "is_error": False}],
            },
        },
        {
            **base,
            "type": "user",
            "uuid": _uuid(4),
            "parentUuid": _uuid(3),
            "timestamp": "2024-01-01T12:00:07Z",
            "isMeta": True,
            "message": {"role": "user", "content": "<local-command-caveat>injected</local-command-caveat>"},
        },
        {
            **base,
            "type": "system",
            "subtype": "compact_boundary",
            "uuid": _uuid(5),
            "timestamp": "2024-01-01T12:00:08Z",
            "content": "Conversation compacted",
            "level": "info",
        },
        {"type": "summary", "summary": "Listing files", "leafUuid": _uuid(5)},
    ]


def _agent_records(session_id: str = SESSION_ID) -> list[dict]:
    base = {"sessionId": session_id, "isSidechain": True}
    return [
        {
            **base,
            "type": "user",
            "uuid": _uuid(11),
            "timestamp": "2024-01-01T12:01:00Z",
            "message": {"role": "user", "content": "Explore the repo"},
        },
        {
            **base,
            "type": "assistant",
            "uuid": _uuid(12),
            "parentUuid": _uuid(11),
            "timestamp": "2024-01-01T12:01:02Z",
            "message": {
                "role": "assistant",
                "model": "claude-haiku-4",
                "content": [{"type": "text", "text": "Done"}],
                "usage": {"input_tokens": 3, "output_tokens": 4},
            },
        },
    ]


@pytest.fixture
def write_jsonl():
    """Write records as NDJSON, creating parent directories."""
    return _write_jsonl


@pytest.fixture
def touch():
    """Create a file holding one empty JSON object."""
    return _touch


@pytest.fixture
def session_records():
    return _session_records


@pytest.fixture
def settings(tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    return Settings(
        home_dir=home,
        project_base_dir=tmp_path / "work",
        history_file=home / ".cc_query_history",
        max_workers=2,
    )


@pytest.fixture
def projects_dir(settings):
    projects = settings.projects_dir
    projects.mkdir(parents=True)
    return projects


@pytest.fixture
def project_dir(projects_dir):
    """A project with one session and one sub-agent of that session."""
    project = projects_dir / PROJECT_SLUG
    _write_jsonl(project / f"{SESSION_ID}.jsonl", _session_records())
    _write_jsonl(project / SESSION_ID / "subagents" / f"agent-{AGENT_ID}.jsonl", _agent_records())
    return project


@pytest.fixture
def session(settings, project_dir):
    with QuerySession.create(settings, data_dir=project_dir) as query_session:
        yield query_session

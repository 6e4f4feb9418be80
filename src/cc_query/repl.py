"""Interactive REPL and piped query execution."""

import readline
import sys
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import TextIO

from loguru import logger

from .errors import QueryError
from .services.database import QuerySession
from .services.views import VIEWS

PROMPT = "ccq> "
CONTINUATION_PROMPT = "  -> "
RESULT_SEPARATOR = "---"

_VIEW_LINES = "\n".join(f"  {name:<19} {description}" for name, description in VIEWS.items())

HELP_TEXT = f"""
Commands:
  .help, .h      Show this help
  .schema, .s    Show schemas for all views
  .schema <view> Show schema for a specific view
  .quit, .q      Exit

Views:
{_VIEW_LINES}

Example queries:
  -- Count messages by type
  SELECT type, count(*) as cnt FROM messages GROUP BY type ORDER BY cnt DESC;

  -- Messages by project (when querying all projects)
  SELECT project, count(*) as cnt FROM messages GROUP BY project ORDER BY cnt DESC;

  -- Recent assistant messages
  SELECT timestamp, message->>'role', message->>'stop_reason'
  FROM assistant_messages ORDER BY timestamp DESC LIMIT 10;

  -- Tool usage
  SELECT tool_name, count(*) as cnt FROM tool_uses
  GROUP BY tool_name ORDER BY cnt DESC;

  -- Sessions summary
  SELECT sessionId, count(*) as msgs, min(timestamp) as started
  FROM messages GROUP BY sessionId ORDER BY started DESC;

  -- System message subtypes
  SELECT subtype, count(*) FROM system_messages GROUP BY subtype;

  -- Agent vs main session breakdown
  SELECT isAgent, count(*) FROM messages GROUP BY isAgent;

JSON field access (DuckDB syntax):
  message->'field'        Access JSON field (returns JSON)
  message->>'field'       Access JSON field as string
  message->'a'->'b'       Nested access

Useful functions:
  arr[n]                 Get nth element (1-indexed)
  UNNEST(arr)            Expand array into rows
  json_extract_string()  Extract string from JSON
"""


class DotCommandResult(Enum):
    CONTINUE = "continue"
    EXIT = "exit"


def split_statements(text: str) -> list[str]:
    """Split batch input on semicolons, dropping empty statements."""
    return [stmt.strip() for stmt in text.split(";") if stmt.strip()]


def _print_result(session: QuerySession, sql: str, out: TextIO, err: TextIO, quiet: bool) -> None:
    try:
        result = session.query(sql)
    except QueryError as e:
        if not quiet:
            print(f"Error: {e}", file=err)
        return
    print(result.to_table(), file=out)


def handle_dot_command(
    command: str,
    session: QuerySession,
    out: TextIO | None = None,
    err: TextIO | None = None,
    quiet_errors: bool = False,
) -> DotCommandResult:
    """Run a dot-command. quiet_errors drops DESCRIBE failures (piped mode)."""
    out = out or sys.stdout
    err = err or sys.stderr
    cmd = command.lower()

    if cmd in (".quit", ".exit", ".q"):
        return DotCommandResult.EXIT

    if cmd in (".help", ".h"):
        print(HELP_TEXT, file=out)
        return DotCommandResult.CONTINUE

    if cmd in (".schema", ".s"):
        for view in VIEWS:
            print(f"\n=== {view} ===", file=out)
            _print_result(session, f"DESCRIBE {view}", out, err, quiet_errors)
        return DotCommandResult.CONTINUE

    if cmd.startswith((".schema ", ".s ")):
        view = command.split()[1]
        _print_result(session, f"DESCRIBE {view}", out, err, quiet_errors)
        return DotCommandResult.CONTINUE

    print(f"Unknown command: {command}. Type .help for usage.", file=out)
    return DotCommandResult.CONTINUE


def banner(session: QuerySession) -> str:
    info = session.info
    if info.project_count > 1:
        loaded = (
            f"Loaded {info.project_count} project(s), {info.session_count} session(s), "
            f"{info.agent_count} agent file(s)"
        )
    else:
        loaded = f"Loaded {info.session_count} session(s), {info.agent_count} agent file(s)"
    return f'{loaded}\nType ".help" for usage hints.\n'


def run_repl_loop(
    session: QuerySession,
    read_line: Callable[[str], str] = input,
    out: TextIO | None = None,
    err: TextIO | None = None,
    add_history: Callable[[str], None] | None = None,
) -> None:
    """Read statements until EOF, Ctrl-C or a quit command.

    A SQL statement runs once a line ends with ``;``; earlier lines are
    buffered and shown with the continuation prompt.
    """
    out = out or sys.stdout
    err = err or sys.stderr
    remember = add_history or (lambda _entry: None)
    buffer: list[str] = []

    while True:
        try:
            line = read_line(CONTINUATION_PROMPT if buffer else PROMPT)
        except (EOFError, KeyboardInterrupt):
            break
        trimmed = line.strip()

        if buffer:
            buffer.append(line)
            if trimmed.endswith(";"):
                statement = "\n".join(buffer)
                buffer.clear()
                remember(statement)
                _print_result(session, statement, out, err, quiet=False)
            continue

        if trimmed.startswith("."):
            remember(trimmed)
            if handle_dot_command(trimmed, session, out, err) is DotCommandResult.EXIT:
                break
        elif trimmed:
            if trimmed.endswith(";"):
                remember(trimmed)
                _print_result(session, trimmed, out, err, quiet=False)
            else:
                buffer.append(line)

    print("Goodbye!", file=out)


def _load_history(history_file: Path | None) -> None:
    if history_file is None:
        return
    try:
        readline.read_history_file(history_file)
    except OSError:
        logger.debug(f"No readable history at {history_file}")


def _save_history(history_file: Path | None) -> None:
    if history_file is None:
        return
    try:
        readline.write_history_file(history_file)
    except OSError as e:
        logger.debug(f"Could not save history to {history_file}: {e}")


def start_interactive(session: QuerySession, history_file: Path | None) -> None:
    """Start an interactive REPL session with persistent line history."""
    _load_history(history_file)
    # Whole statements go into history, not each continuation line
    readline.set_auto_history(False)
    print(banner(session))
    try:
        run_repl_loop(session, add_history=readline.add_history)
    finally:
        _save_history(history_file)


def run_piped(
    session: QuerySession,
    source: TextIO | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> None:
    """Execute semicolon-separated statements from source, streaming TSV.

    Result sets are separated by a ``---`` line. A failed statement is
    reported on stderr and the batch continues; output write errors are fatal.
    """
    source = source or sys.stdin
    out = out or sys.stdout
    err = err or sys.stderr
    first_result = True

    for stmt in split_statements(source.read()):
        if stmt.startswith("."):
            out.flush()
            if handle_dot_command(stmt, session, out, err, quiet_errors=True) is DotCommandResult.EXIT:
                break
            continue

        if not first_result:
            out.write(f"{RESULT_SEPARATOR}\n")
        try:
            session.query_tsv_streaming(stmt, out)
        except QueryError as e:
            out.flush()
            print(f"Error: {e}", file=err)
        else:
            first_result = False

    out.flush()

"""DuckDB query session over discovered session files."""

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

import duckdb
from loguru import logger

from ..config import Settings
from ..errors import NoSessionsError, QueryError
from . import formatter
from .session_loader import SessionInfo, get_session_files, searched_path
from .views import build_create_views_sql


@dataclass
class QueryResult:
    """Column names and display-text rows of one statement."""

    columns: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_table(self) -> str:
        """Format as a table with Unicode box-drawing characters."""
        return formatter.format_table(self.columns, self.rows)

    def to_tsv(self) -> str:
        return formatter.format_tsv(self.columns, self.rows)


def _column_names(cursor: duckdb.DuckDBPyConnection) -> list[str]:
    # description is None for statements that return no result set
    return [desc[0] for desc in cursor.description or []]


def _iter_rows(cursor: duckdb.DuckDBPyConnection) -> Iterator[tuple]:
    while (row := cursor.fetchone()) is not None:
        yield row


class QuerySession:
    """In-memory DuckDB connection with the session views defined.

    The connection is not shared between statements in flight: every query
    holds the session lock until its result is fully read or streamed.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection, info: SessionInfo) -> None:
        self._conn = conn
        self._info = info
        self._lock = threading.Lock()

    @classmethod
    def create(
        cls,
        settings: Settings,
        project_path: str | None = None,
        session_filter: str | None = None,
        data_dir: Path | None = None,
    ) -> "QuerySession":
        """Discover session files and build the views over them.

        Raises:
            NoSessionsError: no session or agent file matched
            QueryError: the view batch could not be created
        """
        info = get_session_files(settings, project_path, session_filter, data_dir)
        if info.is_empty:
            raise NoSessionsError(searched_path(settings, project_path, data_dir))

        logger.debug(
            f"Discovered {info.session_count} session(s), {info.agent_count} agent file(s) "
            f"in {info.project_count} project(s); pattern {info.file_pattern}"
        )

        conn = duckdb.connect(":memory:")
        try:
            conn.execute("SET enable_progress_bar = false")
            conn.execute(build_create_views_sql(info.file_pattern))
        except duckdb.Error as e:
            conn.close()
            raise QueryError(str(e)) from e

        logger.debug("Session views created")
        return cls(conn, info)

    @property
    def info(self) -> SessionInfo:
        """Session information (counts, patterns)."""
        return self._info

    def query(self, sql: str) -> QueryResult:
        """Execute a SQL statement and return all rows as display text."""
        with self._lock:
            try:
                cursor = self._conn.execute(sql)
                columns = _column_names(cursor)
                if not columns:
                    return QueryResult(columns=[], rows=[])
                rows = [[formatter.display_value(v) for v in row] for row in _iter_rows(cursor)]
            except duckdb.Error as e:
                raise QueryError(str(e)) from e
        return QueryResult(columns=columns, rows=rows)

    def query_tsv_streaming(self, sql: str, writer: TextIO) -> int:
        """Execute a SQL statement and stream TSV to writer, one row at a time.

        Returns the number of rows written. Write errors propagate unchanged.
        """
        with self._lock:
            try:
                cursor = self._conn.execute(sql)
            except duckdb.Error as e:
                raise QueryError(str(e)) from e

            columns = _column_names(cursor)
            writer.write("\t".join(columns))
            writer.write("\n")
            if not columns:
                return 0

            row_count = 0
            try:
                for row in _iter_rows(cursor):
                    for i, value in enumerate(row):
                        if i > 0:
                            writer.write("\t")
                        writer.write(formatter.display_value(value))
                    writer.write("\n")
                    row_count += 1
            except duckdb.Error as e:
                raise QueryError(str(e)) from e
            return row_count

    def describe(self, view: str) -> QueryResult:
        """Column names and types of a view."""
        return self.query(f"DESCRIBE {view}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "QuerySession":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

"""Pydantic models for API requests and responses."""

from pydantic import BaseModel, Field, computed_field


class QueryRequest(BaseModel):
    """A single SQL statement to run against the session views."""

    sql: str = Field(min_length=1)


class QueryResponse(BaseModel):
    """Query result with every cell rendered as display text."""

    columns: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def row_count(self) -> int:
        return len(self.rows)


class SessionInfoResponse(BaseModel):
    """Discovered files behind the views."""

    session_count: int = 0
    agent_count: int = 0
    project_count: int = 0
    file_pattern: str = ""


class ViewInfo(BaseModel):
    name: str
    description: str


class ViewListResponse(BaseModel):
    """Catalog of the views defined for every session."""

    views: list[ViewInfo] = Field(default_factory=list)

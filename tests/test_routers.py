import pytest
from fastapi.testclient import TestClient

from cc_query.main import create_app
from cc_query.services.views import VIEWS


@pytest.fixture
def client(session):
    with TestClient(create_app(session)) as test_client:
        yield test_client


def test_get_info(client, project_dir):
    response = client.get("/api/info")

    assert response.status_code == 200
    assert response.json() == {
        "session_count": 1,
        "agent_count": 1,
        "project_count": 1,
        "file_pattern": f"'{project_dir}/**/*.jsonl'",
    }


def test_list_views(client):
    response = client.get("/api/views")

    assert response.status_code == 200
    views = response.json()["views"]
    assert [v["name"] for v in views] == list(VIEWS)
    assert views[0]["description"] == VIEWS["messages"]


def test_describe_view(client):
    response = client.get("/api/views/bash_commands")

    assert response.status_code == 200
    data = response.json()
    assert data["columns"][0] == "column_name"
    assert "command" in [row[0] for row in data["rows"]]


def test_describe_unknown_view(client):
    response = client.get("/api/views/sessions")

    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown view: sessions"


def test_run_query(client):
    response = client.post("/api/query", json={"sql": "SELECT tool_name FROM tool_uses ORDER BY block_index"})

    assert response.status_code == 200
    assert response.json() == {"columns": ["tool_name"], "rows": [["Bash"], ["Read"]], "row_count": 2}


def test_run_query_renders_display_text(client):
    response = client.post("/api/query", json={"sql": "SELECT NULL AS n, true AS b, CAST(3.0 AS DOUBLE) AS f"})

    assert response.json()["rows"] == [["NULL", "true", "3"]]


def test_run_query_error(client):
    response = client.post("/api/query", json={"sql": "SELECT * FROM missing_view"})

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Error: Database error")


def test_run_query_rejects_empty_sql(client):
    response = client.post("/api/query", json={"sql": ""})

    assert response.status_code == 422


def test_query_after_error_still_works(client):
    client.post("/api/query", json={"sql": "SELEC 1"})
    response = client.post("/api/query", json={"sql": "SELECT count(*) AS n FROM messages"})

    assert response.json()["rows"] == [["7"]]

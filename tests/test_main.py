import pytest
from fastapi.testclient import TestClient

from cc_query.errors import QueryError
from cc_query.main import create_app


def test_health(session):
    client = TestClient(create_app(session))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_app_state_holds_session(session):
    app = create_app(session)

    assert app.state.session is session


def test_shutdown_closes_session(session):
    with TestClient(create_app(session)) as client:
        assert client.get("/health").status_code == 200

    with pytest.raises(QueryError):
        session.query("SELECT 1")

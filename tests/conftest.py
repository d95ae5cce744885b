import pytest
from fastapi.testclient import TestClient

from bioclock.core.database import close_db, init_db
from bioclock.main import app


@pytest.fixture(autouse=True)
def fresh_db():
    """Each test starts with an empty in-memory dose log."""
    close_db()
    init_db()
    yield
    close_db()


@pytest.fixture
def client():
    return TestClient(app)

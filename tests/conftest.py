# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from dealscope.adapters.memory_repo import InMemoryResultRepository
from dealscope.api.http import app, get_result_repo  # ensures imports resolve; run tests from repo root


@pytest.fixture(scope="session")
def api_repo():
    return InMemoryResultRepository()


@pytest.fixture(scope="session")
def client(api_repo):
    app.dependency_overrides[get_result_repo] = lambda: api_repo
    return TestClient(app)

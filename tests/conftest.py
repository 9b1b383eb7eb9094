import pytest
from fastapi.testclient import TestClient

from catalog.llm import get_llm
from db import get_store
from fakes import FakeLLM, MemoryProductStore, sample_products
from main import app


@pytest.fixture
def products():
    return sample_products()


@pytest.fixture
def store():
    return MemoryProductStore()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def client(store, llm):
    """TestClient wired to the in-memory store and the scripted model."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_llm] = lambda: llm
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tests.mocks import MockServiceContainer, make_document


def _create_test_client(mock_container) -> TestClient:
    from medassist.server.api import dependencies
    from medassist.server.main import create_app

    dependencies.set_container(mock_container)

    @asynccontextmanager
    async def mock_lifespan(app: FastAPI):
        yield

    with patch("medassist.server.main.lifespan", mock_lifespan):
        app = create_app()
        return TestClient(app)


@pytest.fixture(autouse=True)
def reset_container():
    from medassist.server.api import dependencies

    yield
    dependencies.set_container(None)


@pytest.fixture
def mock_container() -> MockServiceContainer:
    return MockServiceContainer()


@pytest.fixture
def mock_container_no_matches() -> MockServiceContainer:
    document = make_document()
    return MockServiceContainer(documents=[document], scores={document.id: 0.2})


@pytest.fixture
def mock_container_no_pipeline() -> MockServiceContainer:
    container = MockServiceContainer()
    container.rag_pipeline = None
    container.embedding_backfill = None
    return container


@pytest.fixture
def mock_container_no_conversation_service() -> MockServiceContainer:
    container = MockServiceContainer()
    container.conversation_service = None
    return container


@pytest.fixture
def client(mock_container) -> TestClient:
    return _create_test_client(mock_container)


@pytest.fixture
def client_no_matches(mock_container_no_matches) -> TestClient:
    return _create_test_client(mock_container_no_matches)


@pytest.fixture
def client_no_pipeline(mock_container_no_pipeline) -> TestClient:
    return _create_test_client(mock_container_no_pipeline)


@pytest.fixture
def client_no_conversation_service(
    mock_container_no_conversation_service,
) -> TestClient:
    return _create_test_client(mock_container_no_conversation_service)


@pytest.fixture
def client_no_container() -> TestClient:
    return _create_test_client(None)

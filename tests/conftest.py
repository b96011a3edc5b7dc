import os

# keep the module-level app off a real MongoDB
os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient

from board_service.actions.memory import MemoryStorage
from board_service.actions.service import BoardService
from board_service.dependency import Settings
from board_service.main import create_app


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def service(storage: MemoryStorage) -> BoardService:
    return BoardService(storage)


@pytest.fixture
def client(storage: MemoryStorage):
    app = create_app(settings=Settings(storage_backend="memory"), storage=storage)
    with TestClient(app) as c:
        yield c

import pytest
from fastapi.testclient import TestClient

from qaboard.config import STORAGE_FILE, STORAGE_SQL, Settings
from qaboard.main import create_app
from qaboard.services.qa_store import QAStore
from qaboard.storage import FileBackend, SqlBackend

ADMIN_KEY = "test-admin-key"


@pytest.fixture(params=[STORAGE_SQL, STORAGE_FILE])
def backend(request, tmp_path):
    if request.param == STORAGE_SQL:
        b = SqlBackend(f"sqlite:///{tmp_path / 'board.sqlite'}")
    else:
        b = FileBackend(tmp_path / "board.json")
    b.init()
    yield b
    b.close()


@pytest.fixture
def store(backend):
    return QAStore(backend)


@pytest.fixture
def settings():
    return Settings(admin_key=ADMIN_KEY)


@pytest.fixture
def client(settings, store):
    app = create_app(settings, store)
    with TestClient(app) as c:
        yield c

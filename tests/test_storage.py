import json

import pytest

from qaboard.config import STORAGE_FILE, STORAGE_SQL, Settings
from qaboard.errors import StorageFailure
from qaboard.services.qa_store import QAStore
from qaboard.storage import FileBackend, SqlBackend, build_backend
from qaboard.storage.base import QuestionRecord


class TestWriteAtomic:
    def test_exception_discards_writes(self, backend):
        with pytest.raises(RuntimeError):
            with backend.write_atomic() as tx:
                tx.insert_question(QuestionRecord(id="q1", text="lost", created_at=1))
                raise RuntimeError("boom")

        with backend.read() as tx:
            assert tx.list_questions() == []

    def test_commit_on_normal_exit(self, backend):
        with backend.write_atomic() as tx:
            tx.insert_question(QuestionRecord(id="q1", text="kept", created_at=1))
            tx.add_like("q1", "u1", 2)

        with backend.read() as tx:
            assert tx.get_question("q1").text == "kept"
            assert tx.count_likes("q1") == 1
            assert tx.liked_by("u1", ["q1"]) == {"q1"}

    def test_duplicate_like_rejected(self, backend):
        with backend.write_atomic() as tx:
            tx.insert_question(QuestionRecord(id="q1", text="q", created_at=1))
            tx.add_like("q1", "u1", 2)

        with pytest.raises(StorageFailure):
            with backend.write_atomic() as tx:
                tx.add_like("q1", "u1", 3)

        with backend.read() as tx:
            assert tx.count_likes("q1") == 1


class TestFileBackend:
    def test_missing_file_reads_as_empty_board(self, tmp_path):
        backend = FileBackend(tmp_path / "absent.json")
        with backend.read() as tx:
            assert tx.list_questions() == []

    def test_init_creates_file(self, tmp_path):
        path = tmp_path / "nested" / "board.json"
        FileBackend(path).init()
        assert json.loads(path.read_text(encoding="utf-8")) == {"questions": []}

    def test_document_layout(self, tmp_path):
        path = tmp_path / "board.json"
        store = QAStore(FileBackend(path))
        store.init()

        q = store.create_question("What time?")
        a = store.create_answer(q.id, "3pm")
        store.toggle_like(q.id, "u1")

        document = json.loads(path.read_text(encoding="utf-8"))
        saved = document["questions"][0]
        assert saved["id"] == q.id
        assert saved["text"] == "What time?"
        assert saved["createdAt"] == q.created_at
        assert saved["answers"] == [{"id": a.id, "text": "3pm", "createdAt": a.created_at}]
        assert [like["userId"] for like in saved["likes"]] == ["u1"]
        assert not (tmp_path / "board.json.tmp").exists()

    def test_legacy_document_without_likes(self, tmp_path):
        path = tmp_path / "board.json"
        path.write_text(json.dumps({"questions": [{"id": "q1", "text": "old", "createdAt": 5}]}), encoding="utf-8")

        store = QAStore(FileBackend(path))
        view = store.list_questions()[0]
        assert view.likes == 0
        assert view.answers == []

    @pytest.mark.parametrize("content", [
        "not json",
        "[]",
        '{"questions": {}}',
        '{"questions": [1]}',
        '{"questions": [{"text": "no id", "createdAt": 1}]}',
    ])
    def test_corrupt_file(self, tmp_path, content):
        path = tmp_path / "board.json"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(StorageFailure):
            QAStore(FileBackend(path)).list_questions()

    def test_read_transaction_is_read_only(self, tmp_path):
        backend = FileBackend(tmp_path / "board.json")
        backend.init()
        with pytest.raises(RuntimeError):
            with backend.read() as tx:
                tx.insert_question(QuestionRecord(id="q1", text="q", created_at=1))

    def test_survives_reopen(self, tmp_path):
        path = tmp_path / "board.json"
        q = QAStore(FileBackend(path)).create_question("persisted")

        reopened = QAStore(FileBackend(path))
        assert [v.question.id for v in reopened.list_questions()] == [q.id]


class TestSqlBackend:
    def test_survives_reopen(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'board.sqlite'}"
        first = SqlBackend(url)
        first.init()
        q = QAStore(first).create_question("persisted")
        first.close()

        second = SqlBackend(url)
        second.init()
        assert [v.question.id for v in QAStore(second).list_questions()] == [q.id]
        second.close()

    def test_missing_schema_is_storage_failure(self, tmp_path):
        backend = SqlBackend(f"sqlite:///{tmp_path / 'empty.sqlite'}")
        with pytest.raises(StorageFailure):
            QAStore(backend).list_questions()
        backend.close()


class TestBuildBackend:
    def test_sql_by_default(self, tmp_path):
        backend = build_backend(Settings(database_url=f"sqlite:///{tmp_path / 'x.sqlite'}"))
        assert isinstance(backend, SqlBackend)
        assert backend.name == STORAGE_SQL

    def test_file(self, tmp_path):
        backend = build_backend(Settings(storage=STORAGE_FILE, data_file=str(tmp_path / "x.json")))
        assert isinstance(backend, FileBackend)


class TestSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BV_ADMIN_KEY", "s3cret")
        monkeypatch.setenv("BV_STORAGE", "FILE")
        monkeypatch.setenv("BV_DATA_FILE", "/tmp/board.json")
        monkeypatch.setenv("API_PREFIX", "/api/")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("BV_DB_FILE", "custom.sqlite")
        monkeypatch.setenv("RATE_LIMIT", " 10 per minute ")

        settings = Settings.from_env()
        assert settings.admin_key == "s3cret"
        assert settings.storage == STORAGE_FILE
        assert settings.data_file == "/tmp/board.json"
        assert settings.api_prefix == "/api"
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.database_url == "sqlite:///custom.sqlite"
        assert settings.rate_limit == "10 per minute"

    def test_unknown_storage(self, monkeypatch):
        monkeypatch.setenv("BV_STORAGE", "redis")
        with pytest.raises(ValueError):
            Settings.from_env()

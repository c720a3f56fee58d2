from qaboard.config import STORAGE_FILE, Settings
from qaboard.storage.base import AnswerRecord, QuestionRecord, StorageBackend, Transaction
from qaboard.storage.file import FileBackend
from qaboard.storage.sql import SqlBackend

__all__ = [
    "AnswerRecord",
    "QuestionRecord",
    "StorageBackend",
    "Transaction",
    "FileBackend",
    "SqlBackend",
    "build_backend",
]


def build_backend(settings: Settings) -> StorageBackend:
    """Pick the backend named by BV_STORAGE."""
    if settings.storage == STORAGE_FILE:
        return FileBackend(settings.data_file)
    return SqlBackend(settings.database_url)

import json
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from qaboard.errors import StorageFailure
from qaboard.storage.base import AnswerRecord, QuestionRecord, StorageBackend, Transaction

logger = logging.getLogger(__name__)

QUESTION_KEYS = {"id", "text", "createdAt"}


def _empty_document() -> Dict[str, Any]:
    return {"questions": []}


class FileTransaction(Transaction):
    """Works on an in-memory copy of the JSON document."""

    def __init__(self, document: Dict[str, Any], writable: bool):
        self.document = document
        self.writable = writable
        self.dirty = False
        self._by_id = {q["id"]: q for q in document["questions"]}

    def _mutating(self):
        if not self.writable:
            raise RuntimeError("read() transactions cannot modify the document")
        self.dirty = True

    def get_question(self, question_id: str) -> Optional[QuestionRecord]:
        q = self._by_id.get(question_id)
        if q is None:
            return None
        return QuestionRecord(id=q["id"], text=q["text"], created_at=q["createdAt"])

    def list_questions(self) -> List[QuestionRecord]:
        rows = sorted(self.document["questions"], key=lambda q: q["createdAt"], reverse=True)
        return [QuestionRecord(id=q["id"], text=q["text"], created_at=q["createdAt"]) for q in rows]

    def insert_question(self, question: QuestionRecord) -> None:
        self._mutating()
        doc = {
            "id": question.id,
            "text": question.text,
            "createdAt": question.created_at,
            "answers": [],
            "likes": [],
        }
        self.document["questions"].append(doc)
        self._by_id[question.id] = doc

    def delete_question(self, question_id: str) -> bool:
        q = self._by_id.get(question_id)
        if q is None:
            return False
        self._mutating()
        # answers and likes are nested, so they go with it
        self.document["questions"].remove(q)
        del self._by_id[question_id]
        return True

    def insert_answer(self, answer: AnswerRecord) -> None:
        self._mutating()
        self._by_id[answer.question_id]["answers"].append({
            "id": answer.id,
            "text": answer.text,
            "createdAt": answer.created_at,
        })

    def delete_answer(self, answer_id: str) -> bool:
        for q in self.document["questions"]:
            for a in q["answers"]:
                if a["id"] == answer_id:
                    self._mutating()
                    q["answers"].remove(a)
                    return True
        return False

    def answers_for(self, question_ids: Iterable[str]) -> Dict[str, List[AnswerRecord]]:
        grouped: Dict[str, List[AnswerRecord]] = {}
        for question_id in question_ids:
            q = self._by_id.get(question_id)
            if q is None or not q["answers"]:
                continue
            rows = sorted(q["answers"], key=lambda a: a["createdAt"])
            grouped[question_id] = [
                AnswerRecord(id=a["id"], question_id=question_id, text=a["text"], created_at=a["createdAt"])
                for a in rows
            ]
        return grouped

    def like_counts(self, question_ids: Iterable[str]) -> Dict[str, int]:
        return {
            question_id: len(self._by_id[question_id]["likes"])
            for question_id in question_ids
            if question_id in self._by_id
        }

    def liked_by(self, user_id: str, question_ids: Iterable[str]) -> Set[str]:
        return {
            question_id
            for question_id in question_ids
            if question_id in self._by_id and self.has_like(question_id, user_id)
        }

    def has_like(self, question_id: str, user_id: str) -> bool:
        q = self._by_id.get(question_id)
        if q is None:
            return False
        return any(like["userId"] == user_id for like in q["likes"])

    def add_like(self, question_id: str, user_id: str, created_at: int) -> None:
        if self.has_like(question_id, user_id):
            raise StorageFailure(message=f"duplicate like ({question_id}, {user_id})")
        self._mutating()
        self._by_id[question_id]["likes"].append({"userId": user_id, "createdAt": created_at})

    def remove_like(self, question_id: str, user_id: str) -> None:
        q = self._by_id.get(question_id)
        if q is None:
            return
        remaining = [like for like in q["likes"] if like["userId"] != user_id]
        if len(remaining) != len(q["likes"]):
            self._mutating()
            q["likes"] = remaining

    def count_likes(self, question_id: str) -> int:
        q = self._by_id.get(question_id)
        return len(q["likes"]) if q else 0


class FileBackend(StorageBackend):
    """
    Flat JSON document backend.

    The whole document is loaded for every operation and rewritten on every
    mutation: written to a temp file next to the target, fsynced, then
    swapped in with os.replace so readers never see a half-written file.
    Only suitable for small boards served by a single process.
    """

    name = "file"

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self._lock = threading.RLock()

    def init(self) -> None:
        with self._lock:
            if not self.path.exists():
                self._write(_empty_document())
            else:
                self._load()
        logger.info("File storage ready at %s", self.path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return _empty_document()
        try:
            with self.path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageFailure(message=f"cannot read {self.path}: {e}") from e

        if not isinstance(document, dict) or not isinstance(document.get("questions"), list):
            raise StorageFailure(message=f"{self.path} is not a Q&A document")
        try:
            for q in document["questions"]:
                if not QUESTION_KEYS <= q.keys():
                    raise KeyError(", ".join(sorted(QUESTION_KEYS - q.keys())))
                q.setdefault("answers", [])
                q.setdefault("likes", [])
        except (KeyError, TypeError, AttributeError) as e:
            raise StorageFailure(message=f"{self.path} has a malformed question entry: {e}") from e
        return document

    def _write(self, document: Dict[str, Any]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageFailure(message=f"cannot write {self.path}: {e}") from e

    @contextmanager
    def read(self):
        with self._lock:
            yield FileTransaction(self._load(), writable=False)

    @contextmanager
    def write_atomic(self):
        with self._lock:
            tx = FileTransaction(self._load(), writable=True)
            yield tx
            if tx.dirty:
                self._write(tx.document)

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qaboard.database import Base, make_engine, make_session_factory
from qaboard.errors import StorageFailure
from qaboard.models import Answer, Like, Question
from qaboard.storage.base import AnswerRecord, QuestionRecord, StorageBackend, Transaction

logger = logging.getLogger(__name__)


def _question_record(q: Question) -> QuestionRecord:
    return QuestionRecord(id=q.id, text=q.text, created_at=q.created_at)


def _answer_record(a: Answer) -> AnswerRecord:
    return AnswerRecord(id=a.id, question_id=a.question_id, text=a.text, created_at=a.created_at)


class SqlTransaction(Transaction):
    def __init__(self, db: Session):
        self.db = db

    def get_question(self, question_id: str) -> Optional[QuestionRecord]:
        q = self.db.query(Question).filter(Question.id == question_id).first()
        return _question_record(q) if q else None

    def list_questions(self) -> List[QuestionRecord]:
        rows = self.db.query(Question).order_by(Question.created_at.desc()).all()
        return [_question_record(q) for q in rows]

    def insert_question(self, question: QuestionRecord) -> None:
        self.db.add(Question(id=question.id, text=question.text, created_at=question.created_at))

    def delete_question(self, question_id: str) -> bool:
        # Explicit deletes keep the cascade independent of the FK pragma
        self.db.query(Like).filter(Like.question_id == question_id).delete(synchronize_session=False)
        self.db.query(Answer).filter(Answer.question_id == question_id).delete(synchronize_session=False)
        deleted = self.db.query(Question).filter(Question.id == question_id).delete(synchronize_session=False)
        return deleted > 0

    def insert_answer(self, answer: AnswerRecord) -> None:
        self.db.add(Answer(
            id=answer.id,
            question_id=answer.question_id,
            text=answer.text,
            created_at=answer.created_at,
        ))

    def delete_answer(self, answer_id: str) -> bool:
        deleted = self.db.query(Answer).filter(Answer.id == answer_id).delete(synchronize_session=False)
        return deleted > 0

    def answers_for(self, question_ids: Iterable[str]) -> Dict[str, List[AnswerRecord]]:
        ids = list(question_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(Answer)
            .filter(Answer.question_id.in_(ids))
            .order_by(Answer.created_at.asc())
            .all()
        )
        grouped: Dict[str, List[AnswerRecord]] = {}
        for a in rows:
            grouped.setdefault(a.question_id, []).append(_answer_record(a))
        return grouped

    def like_counts(self, question_ids: Iterable[str]) -> Dict[str, int]:
        ids = list(question_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(Like.question_id, func.count(Like.user_id))
            .filter(Like.question_id.in_(ids))
            .group_by(Like.question_id)
            .all()
        )
        return {question_id: count for question_id, count in rows}

    def liked_by(self, user_id: str, question_ids: Iterable[str]) -> Set[str]:
        ids = list(question_ids)
        if not ids:
            return set()
        rows = (
            self.db.query(Like.question_id)
            .filter(Like.user_id == user_id, Like.question_id.in_(ids))
            .all()
        )
        return {row[0] for row in rows}

    def has_like(self, question_id: str, user_id: str) -> bool:
        return self.db.query(Like).filter(
            Like.question_id == question_id,
            Like.user_id == user_id,
        ).first() is not None

    def add_like(self, question_id: str, user_id: str, created_at: int) -> None:
        self.db.add(Like(question_id=question_id, user_id=user_id, created_at=created_at))
        self.db.flush()

    def remove_like(self, question_id: str, user_id: str) -> None:
        self.db.query(Like).filter(
            Like.question_id == question_id,
            Like.user_id == user_id,
        ).delete(synchronize_session=False)

    def count_likes(self, question_id: str) -> int:
        return self.db.query(Like).filter(Like.question_id == question_id).count()


class SqlBackend(StorageBackend):
    """Relational backend on any SQLAlchemy URL (SQLite by default)."""

    name = "sql"

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = make_engine(database_url)
        self.SessionLocal = make_session_factory(self.engine)
        # Serializes writers within this process; the likes primary key
        # rejects duplicates coming from anywhere else.
        self._write_lock = threading.Lock()

    def init(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise StorageFailure(message=f"schema bootstrap failed: {e}") from e
        logger.info("SQL storage ready at %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def read(self):
        db = self.SessionLocal()
        try:
            yield SqlTransaction(db)
        except SQLAlchemyError as e:
            raise StorageFailure(message=f"read failed: {e}") from e
        finally:
            db.close()

    @contextmanager
    def write_atomic(self):
        with self._write_lock:
            db = self.SessionLocal()
            try:
                yield SqlTransaction(db)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise StorageFailure(message=f"write failed: {e}") from e
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    def close(self) -> None:
        self.engine.dispose()

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from qaboard.errors import InvalidInput, NotFound
from qaboard.storage.base import AnswerRecord, QuestionRecord, StorageBackend

logger = logging.getLogger(__name__)

# ✅ CHARACTER LIMIT for questions and answers
MAX_TEXT_LENGTH = 1000


class LikeState(str, Enum):
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class ToggleResult:
    state: LikeState
    likes: int


@dataclass
class QuestionView:
    """A question as listed: with its answers (oldest first) and like info."""
    question: QuestionRecord
    answers: List[AnswerRecord] = field(default_factory=list)
    likes: int = 0
    liked_by_me: bool = False


class MonotonicClock:
    """Epoch milliseconds that never repeat, so recency ordering is total."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        with self._lock:
            ts = int(time.time() * 1000)
            if ts <= self._last:
                ts = self._last + 1
            self._last = ts
            return ts


def clean_text(text: Optional[str]) -> str:
    """Trim and validate question/answer text."""
    cleaned = (text or "").strip()
    if not cleaned or len(cleaned) > MAX_TEXT_LENGTH:
        raise InvalidInput("invalid_text")
    return cleaned


def clean_user_id(user_id: Optional[str]) -> str:
    cleaned = (user_id or "").strip()
    if not cleaned:
        raise InvalidInput("userId_required")
    return cleaned


class QAStore:
    """
    Questions, answers and like toggles on top of a storage backend.

    Each operation is a single read() or write_atomic() block, so a toggle's
    check-then-insert never interleaves with another writer.
    """

    def __init__(self, backend: StorageBackend, clock: MonotonicClock | None = None):
        self.backend = backend
        self.clock = clock or MonotonicClock()

    def init(self) -> None:
        self.backend.init()

    def close(self) -> None:
        self.backend.close()

    def list_questions(self, requesting_user_id: Optional[str] = None) -> List[QuestionView]:
        user_id = (requesting_user_id or "").strip() or None

        with self.backend.read() as tx:
            questions = tx.list_questions()
            ids = [q.id for q in questions]
            answers = tx.answers_for(ids)
            counts = tx.like_counts(ids)
            liked = tx.liked_by(user_id, ids) if user_id else set()

        return [
            QuestionView(
                question=q,
                answers=answers.get(q.id, []),
                likes=counts.get(q.id, 0),
                liked_by_me=q.id in liked,
            )
            for q in questions
        ]

    def get_question(self, question_id: str, requesting_user_id: Optional[str] = None) -> QuestionView:
        user_id = (requesting_user_id or "").strip() or None

        with self.backend.read() as tx:
            q = tx.get_question(question_id)
            if q is None:
                raise NotFound("question_not_found")
            return QuestionView(
                question=q,
                answers=tx.answers_for([q.id]).get(q.id, []),
                likes=tx.count_likes(q.id),
                liked_by_me=bool(user_id) and tx.has_like(q.id, user_id),
            )

    def create_question(self, text: Optional[str]) -> QuestionRecord:
        question = QuestionRecord(
            id=str(uuid.uuid4()),
            text=clean_text(text),
            created_at=self.clock.now_ms(),
        )
        with self.backend.write_atomic() as tx:
            tx.insert_question(question)

        logger.info("Question %s created", question.id)
        return question

    def create_answer(self, question_id: str, text: Optional[str]) -> AnswerRecord:
        cleaned = clean_text(text)

        with self.backend.write_atomic() as tx:
            if not tx.question_exists(question_id):
                raise NotFound("question_not_found")
            answer = AnswerRecord(
                id=str(uuid.uuid4()),
                question_id=question_id,
                text=cleaned,
                created_at=self.clock.now_ms(),
            )
            tx.insert_answer(answer)

        logger.info("Answer %s added to question %s", answer.id, question_id)
        return answer

    def toggle_like(self, question_id: str, user_id: Optional[str]) -> ToggleResult:
        """
        Flip the (question, user) like.

        Returns the new state and like count. Two toggles racing from the
        same user serialize, so the final state may not be what either
        caller expected, but a user never holds two likes on one question.
        """
        user_id = clean_user_id(user_id)

        with self.backend.write_atomic() as tx:
            if not tx.question_exists(question_id):
                raise NotFound("question_not_found")

            if tx.has_like(question_id, user_id):
                tx.remove_like(question_id, user_id)
                state = LikeState.REMOVED
            else:
                tx.add_like(question_id, user_id, self.clock.now_ms())
                state = LikeState.ADDED

            likes = tx.count_likes(question_id)

        logger.info("Like on %s by %s %s (now %d)", question_id, user_id, state.value, likes)
        return ToggleResult(state=state, likes=likes)

    def delete_question(self, question_id: str) -> bool:
        """Delete a question with its answers and likes. Unknown ids are a no-op."""
        with self.backend.write_atomic() as tx:
            deleted = tx.delete_question(question_id)

        if deleted:
            logger.info("Question %s deleted", question_id)
        return deleted

    def delete_answer(self, answer_id: str) -> bool:
        with self.backend.write_atomic() as tx:
            deleted = tx.delete_answer(answer_id)

        if deleted:
            logger.info("Answer %s deleted", answer_id)
        return deleted

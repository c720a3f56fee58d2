"""
Storage backend contract.

The Q&A store never talks to a database or a file directly. It opens a
``read()`` or ``write_atomic()`` block on a backend and works through the
``Transaction`` primitives below. Everything done inside one
``write_atomic()`` block is committed together, or not at all.
"""
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set


@dataclass(frozen=True)
class QuestionRecord:
    id: str
    text: str
    created_at: int


@dataclass(frozen=True)
class AnswerRecord:
    id: str
    question_id: str
    text: str
    created_at: int


class Transaction(ABC):

    # --- questions ---

    @abstractmethod
    def get_question(self, question_id: str) -> Optional[QuestionRecord]:
        ...

    def question_exists(self, question_id: str) -> bool:
        return self.get_question(question_id) is not None

    @abstractmethod
    def list_questions(self) -> List[QuestionRecord]:
        """All questions, newest first."""

    @abstractmethod
    def insert_question(self, question: QuestionRecord) -> None:
        ...

    @abstractmethod
    def delete_question(self, question_id: str) -> bool:
        """Delete a question with its answers and likes. Returns False if it did not exist."""

    # --- answers ---

    @abstractmethod
    def insert_answer(self, answer: AnswerRecord) -> None:
        ...

    @abstractmethod
    def delete_answer(self, answer_id: str) -> bool:
        ...

    @abstractmethod
    def answers_for(self, question_ids: Iterable[str]) -> Dict[str, List[AnswerRecord]]:
        """Answers grouped by question id, oldest first. Questions without answers may be absent."""

    # --- likes ---

    @abstractmethod
    def like_counts(self, question_ids: Iterable[str]) -> Dict[str, int]:
        ...

    @abstractmethod
    def liked_by(self, user_id: str, question_ids: Iterable[str]) -> Set[str]:
        """Subset of question_ids the user currently likes."""

    @abstractmethod
    def has_like(self, question_id: str, user_id: str) -> bool:
        ...

    @abstractmethod
    def add_like(self, question_id: str, user_id: str, created_at: int) -> None:
        ...

    @abstractmethod
    def remove_like(self, question_id: str, user_id: str) -> None:
        ...

    @abstractmethod
    def count_likes(self, question_id: str) -> int:
        ...


class StorageBackend(ABC):
    name = "abstract"

    @abstractmethod
    def init(self) -> None:
        """Create tables / the data file if they do not exist yet."""

    @abstractmethod
    def read(self) -> AbstractContextManager[Transaction]:
        ...

    @abstractmethod
    def write_atomic(self) -> AbstractContextManager[Transaction]:
        ...

    def close(self) -> None:
        pass

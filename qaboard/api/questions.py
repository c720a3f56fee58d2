from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from qaboard.dependencies import get_store
from qaboard.services.qa_store import QAStore, QuestionView
from qaboard.storage.base import AnswerRecord, QuestionRecord

router = APIRouter(tags=["questions"])


def _js_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join(_js_string(v) for v in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def as_text(value: Any) -> str:
    """
    Coerce a loosely-typed JSON field the way the web client's backend always
    has: falsy values (null, false, 0, "") become "", lists are comma-joined.
    """
    if isinstance(value, dict):
        return "[object Object]"
    if not value:
        return ""
    return _js_string(value)


def serialize_question(q: QuestionRecord):
    return {"id": q.id, "text": q.text, "createdAt": q.created_at}


def serialize_answer(a: AnswerRecord):
    return {"id": a.id, "questionId": a.question_id, "text": a.text, "createdAt": a.created_at}


def serialize_question_view(view: QuestionView):
    """Listing shape: question plus answers, like count and likedByMe"""
    return {
        **serialize_question(view.question),
        "answers": [
            {"id": a.id, "text": a.text, "createdAt": a.created_at}
            for a in view.answers
        ],
        "likes": view.likes,
        "likedByMe": view.liked_by_me,
    }


class TextRequest(BaseModel):
    text: Any = None


class ToggleLikeRequest(BaseModel):
    userId: Any = None


@router.get("/questions")
def list_questions(userId: Optional[str] = None, store: QAStore = Depends(get_store)):
    """All questions, newest first, each with answers and like info for userId."""
    views = store.list_questions(userId)
    return {"ok": True, "questions": [serialize_question_view(v) for v in views]}


@router.post("/questions")
def create_question(payload: Optional[TextRequest] = None, store: QAStore = Depends(get_store)):
    text = as_text(payload.text if payload else None)
    question = store.create_question(text)
    return {"ok": True, "question": serialize_question(question)}


@router.post("/questions/{question_id}/answers")
def create_answer(
    question_id: str,
    payload: Optional[TextRequest] = None,
    store: QAStore = Depends(get_store),
):
    text = as_text(payload.text if payload else None)
    answer = store.create_answer(question_id, text)
    return {"ok": True, "answer": serialize_answer(answer)}


@router.post("/questions/{question_id}/toggle-like")
def toggle_like(
    question_id: str,
    payload: Optional[ToggleLikeRequest] = None,
    store: QAStore = Depends(get_store),
):
    """Like if the user has not liked the question yet, otherwise unlike."""
    user_id = as_text(payload.userId if payload else None)
    result = store.toggle_like(question_id, user_id)
    return {"ok": True, "toggled": result.state.value, "likes": result.likes}

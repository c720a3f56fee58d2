"""
🔒 ADMIN API - Moderation
Every route here requires the x-admin-key header to match BV_ADMIN_KEY.
Deletes are idempotent: unknown ids still answer {"ok": true}.
"""

from fastapi import APIRouter, Depends

from qaboard.dependencies import get_store, require_admin
from qaboard.services.qa_store import QAStore

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


@router.delete("/questions/{question_id}")
def delete_question(question_id: str, store: QAStore = Depends(get_store)):
    """Delete a question together with all its answers and likes."""
    store.delete_question(question_id)
    return {"ok": True}


@router.delete("/answers/{answer_id}")
def delete_answer(answer_id: str, store: QAStore = Depends(get_store)):
    store.delete_answer(answer_id)
    return {"ok": True}

from qaboard.models.question import Question
from qaboard.models.answer import Answer
from qaboard.models.like import Like

__all__ = ["Question", "Answer", "Like"]

from sqlalchemy import Column, String, Text, BigInteger, ForeignKey
from sqlalchemy.orm import relationship
from qaboard.database import Base

class Answer(Base):
    __tablename__ = "answers"

    id = Column(String(36), primary_key=True)
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    created_at = Column(BigInteger, nullable=False)

    question = relationship("Question", back_populates="answers")

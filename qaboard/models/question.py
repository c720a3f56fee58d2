from sqlalchemy import Column, String, Text, BigInteger
from sqlalchemy.orm import relationship
from qaboard.database import Base

class Question(Base):
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True)
    text = Column(Text, nullable=False)
    created_at = Column(BigInteger, nullable=False, index=True)  # epoch milliseconds

    answers = relationship("Answer", back_populates="question", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", cascade="all, delete-orphan", passive_deletes=True)

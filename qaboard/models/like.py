from sqlalchemy import Column, String, BigInteger, ForeignKey
from qaboard.database import Base

class Like(Base):
    __tablename__ = "likes"

    # Composite primary key: each user can only like a question once
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(255), primary_key=True)
    created_at = Column(BigInteger, nullable=False)

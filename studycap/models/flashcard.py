from sqlalchemy import Column, Integer, String, Float, DateTime, Text
from datetime import datetime
from studycap.database import Base

class Flashcard(Base):
    """Flashcard with its SM-2 review state"""
    __tablename__ = "flashcards"
    
    id = Column(Integer, primary_key=True, index=True)
    front = Column(Text, nullable=False)
    back = Column(Text, nullable=False)
    topic = Column(String)  # weak-point key; falls back to front when empty
    
    # SM-2 algorithm fields
    ease_factor = Column(Float, nullable=False, default=2.5)  # EF: growth multiplier, >= 1.3
    interval_days = Column(Integer, nullable=False, default=0)  # days until next review
    repetitions = Column(Integer, nullable=False, default=0)  # consecutive successful reviews
    
    last_reviewed_at = Column(DateTime)
    next_review_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def weak_point_topic(self) -> str:
        return self.topic or self.front

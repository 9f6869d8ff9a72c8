from sqlalchemy import Column, Integer, String, DateTime
from studycap.database import Base

class WeakPointRecord(Base):
    """Persisted weak-point counter, one row per normalized topic"""
    __tablename__ = "weak_points"
    
    id = Column(Integer, primary_key=True, index=True)
    topic = Column(String, nullable=False)  # display spelling
    topic_key = Column(String, nullable=False, unique=True, index=True)  # normalized
    count = Column(Integer, nullable=False, default=1)
    last_failed_at = Column(DateTime, nullable=False)

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime
from studycap.database import Base

class StudyBlockRecord(Base):
    """Calendar block; task_id/plan_id are lookups only, not foreign keys"""
    __tablename__ = "study_blocks"
    
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, default="")
    subject = Column(String)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    task_id = Column(Integer)
    plan_id = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)

from sqlalchemy import Column, Integer, Text, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from studycap.database import Base

class StudyPlanRecord(Base):
    """Multi-day study plan"""
    __tablename__ = "study_plans"
    
    id = Column(Integer, primary_key=True, index=True)
    goal = Column(Text, nullable=False)
    duration_days = Column(Integer, nullable=False)  # fixed at creation
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    
    tasks = relationship(
        "PlanTaskRecord",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="PlanTaskRecord.day_number"
    )

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from studycap.database import Base

class PlanTaskRecord(Base):
    """Day-bucketed task belonging to a study plan"""
    __tablename__ = "plan_tasks"
    
    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    topic = Column(String)
    task_type = Column(String, nullable=False, default="study")  # see schemas.TaskType
    day_number = Column(Integer, nullable=False)  # 1..plan.duration_days
    time_estimate_minutes = Column(Integer, nullable=False, default=30)
    status = Column(String, nullable=False, default="pending")  # "pending" or "completed"
    completed_at = Column(DateTime)
    mastery_verified = Column(Boolean, nullable=False, default=False)
    
    plan = relationship("StudyPlanRecord", back_populates="tasks")

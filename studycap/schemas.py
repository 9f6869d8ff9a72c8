from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional, Union
from datetime import date, datetime
from enum import Enum

ItemId = Union[int, str]


class TaskType(str, Enum):
    """Cognitive type of a plan task (closed set)"""
    ACTIVE_RECALL = "active_recall"
    PRACTICE = "practice"
    REVIEW = "review"
    SPACED_REVIEW = "spaced_review"
    DEEP_STUDY = "deep_study"
    STUDY = "study"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TaskType":
        """Map free text from a content source onto the enum, falling back to STUDY"""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.STUDY
        key = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            return cls.STUDY


class TaskStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class WorkloadBand(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReviewState(BaseModel):
    """SM-2 scheduling state of a single review item"""
    model_config = ConfigDict(from_attributes=True)

    id: ItemId
    ease_factor: float = Field(default=2.5, ge=1.3)
    interval_days: int = Field(default=0, ge=0)
    repetitions: int = Field(default=0, ge=0)
    last_reviewed_at: Optional[datetime] = None
    next_review_at: datetime


class WeakPoint(BaseModel):
    """Per-topic struggle counter"""
    model_config = ConfigDict(from_attributes=True)

    topic: str
    count: int = Field(default=1, ge=1)
    last_failed_at: datetime


class StudyPlan(BaseModel):
    """Bounded multi-day scheduling horizon"""
    model_config = ConfigDict(from_attributes=True)

    id: ItemId
    goal: str
    duration_days: int = Field(ge=1)
    created_at: datetime


class TaskContent(BaseModel):
    """A task suggestion returned by a content source (title/description only)"""
    title: str
    description: str = ""
    topic: Optional[str] = None
    task_type: Optional[str] = None
    time_minutes: Optional[int] = None


class PlanTaskDraft(BaseModel):
    """A day-bucketed task that has not been persisted yet"""
    title: str
    description: str = ""
    task_type: TaskType = TaskType.STUDY
    day_number: int = Field(ge=1)
    time_estimate_minutes: int = Field(gt=0)
    topic: Optional[str] = None


class PlanTask(BaseModel):
    """A persisted task inside a plan"""
    model_config = ConfigDict(from_attributes=True)

    id: ItemId
    plan_id: ItemId
    title: str
    description: Optional[str] = None
    task_type: TaskType = TaskType.STUDY
    day_number: int = Field(ge=1)
    time_estimate_minutes: int = Field(gt=0)
    status: TaskStatus = TaskStatus.PENDING
    completed_at: Optional[datetime] = None
    mastery_verified: bool = False
    topic: Optional[str] = None


class ReplanResult(BaseModel):
    """Outcome of regenerating the unfinished part of a plan"""
    kept: List[PlanTask]
    discarded: List[PlanTask]
    drafts: List[PlanTaskDraft]
    window_start: int
    remaining_days: int
    catch_up: bool = False


class StudyBlock(BaseModel):
    """A placed calendar occurrence used for load computation"""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[ItemId] = None
    title: str = ""
    subject: Optional[str] = None
    start_time: datetime
    end_time: datetime
    completed: bool = False
    task_id: Optional[ItemId] = None
    plan_id: Optional[ItemId] = None

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class DayLoad(BaseModel):
    """Scheduled hours for one calendar day and its band"""
    day: date
    hours: float
    band: WorkloadBand
    block_count: int = 0


class SubjectLoad(BaseModel):
    """Scheduled vs completed hours for one subject"""
    subject: str
    scheduled_hours: float = 0.0
    completed_hours: float = 0.0
    block_count: int = 0

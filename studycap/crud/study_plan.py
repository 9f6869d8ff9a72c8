from sqlalchemy.orm import Session
from studycap.allocator import PlanAllocator
from studycap.clock import utcnow
from studycap.models import PlanTaskRecord, StudyPlanRecord
from studycap.plans import complete_task, validate_day_number
from studycap.replan import ReplanEngine
from studycap.schemas import PlanTask, PlanTaskDraft, ReplanResult, StudyPlan, TaskStatus
from datetime import datetime
from typing import Iterable, List, Optional

def _add_tasks(db: Session, plan: StudyPlanRecord, drafts: Iterable[PlanTaskDraft]):
    for draft in drafts:
        db.add(PlanTaskRecord(
            plan_id=plan.id,
            title=draft.title,
            description=draft.description,
            topic=draft.topic,
            task_type=draft.task_type.value,
            day_number=validate_day_number(draft.day_number, plan.duration_days),
            time_estimate_minutes=draft.time_estimate_minutes,
            status=TaskStatus.PENDING.value
        ))

def create_study_plan(
    db: Session,
    goal: str,
    duration_days: int,
    allocator: PlanAllocator,
    weak_topics: Optional[List[str]] = None,
    now: Optional[datetime] = None
) -> StudyPlanRecord:
    """
    Allocate tasks for a goal and save the plan with its tasks.
    
    Allocation happens before anything is written, so an EmptyPlanError
    leaves no plan row behind.
    """
    drafts = allocator.allocate(goal, duration_days, weak_topics)
    
    plan = StudyPlanRecord(goal=goal, duration_days=duration_days, created_at=now or utcnow())
    db.add(plan)
    db.flush()
    _add_tasks(db, plan, drafts)
    db.commit()
    db.refresh(plan)
    return plan

def get_study_plan(db: Session, plan_id: int) -> Optional[StudyPlanRecord]:
    """Get plan by ID"""
    return db.query(StudyPlanRecord).filter(StudyPlanRecord.id == plan_id).first()

def get_study_plans(db: Session) -> List[StudyPlanRecord]:
    """Get all plans, newest first"""
    return db.query(StudyPlanRecord).order_by(StudyPlanRecord.created_at.desc(), StudyPlanRecord.id.desc()).all()

def get_plan_tasks(db: Session, plan_id: int, day_number: Optional[int] = None) -> List[PlanTaskRecord]:
    """Get a plan's tasks ordered by day, optionally for a single day"""
    query = db.query(PlanTaskRecord).filter(PlanTaskRecord.plan_id == plan_id)
    if day_number is not None:
        query = query.filter(PlanTaskRecord.day_number == day_number)
    return query.order_by(PlanTaskRecord.day_number, PlanTaskRecord.id).all()

def complete_plan_task(
    db: Session,
    task_id: int,
    mastery_verified: bool = False,
    now: Optional[datetime] = None
) -> Optional[PlanTaskRecord]:
    """Mark a task completed; already completed tasks keep their original completion time"""
    record = db.query(PlanTaskRecord).filter(PlanTaskRecord.id == task_id).first()
    if not record:
        return None
    
    task = complete_task(PlanTask.model_validate(record), now, mastery_verified)
    record.status = task.status.value
    record.completed_at = task.completed_at
    record.mastery_verified = task.mastery_verified
    db.commit()
    db.refresh(record)
    return record

def replan_study_plan(
    db: Session,
    plan_id: int,
    engine: ReplanEngine,
    weak_topics: Optional[List[str]] = None,
    now: Optional[datetime] = None
) -> Optional[ReplanResult]:
    """
    Replace the plan's pending tasks with a fresh allocation for the remaining days.
    
    Completed tasks are never modified. If allocation fails, nothing is deleted.
    """
    plan = get_study_plan(db, plan_id)
    if not plan:
        return None
    
    records = get_plan_tasks(db, plan_id)
    result = engine.replan(
        StudyPlan.model_validate(plan),
        [PlanTask.model_validate(r) for r in records],
        weak_topics,
        now
    )
    
    discarded_ids = {t.id for t in result.discarded}
    for record in records:
        if record.id in discarded_ids and record.status != TaskStatus.COMPLETED.value:
            db.delete(record)
    _add_tasks(db, plan, result.drafts)
    db.commit()
    return result

def delete_study_plan(db: Session, plan_id: int) -> bool:
    """Delete a plan and, by cascade, its tasks"""
    plan = get_study_plan(db, plan_id)
    if not plan:
        return False
    db.delete(plan)
    db.commit()
    return True

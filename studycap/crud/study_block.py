from sqlalchemy.orm import Session
from studycap.models import StudyBlockRecord
from studycap.schemas import StudyBlock
from datetime import date, datetime, timedelta
from typing import List, Optional

def create_study_block(db: Session, block: StudyBlock) -> StudyBlockRecord:
    """Save a validated study block"""
    record = StudyBlockRecord(**block.model_dump(exclude={"id"}))
    db.add(record)
    db.commit()
    db.refresh(record)
    return record

def get_study_blocks(
    db: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[StudyBlock]:
    """Blocks starting in [start, end), ordered by start time"""
    query = db.query(StudyBlockRecord)
    if start is not None:
        query = query.filter(StudyBlockRecord.start_time >= start)
    if end is not None:
        query = query.filter(StudyBlockRecord.start_time < end)
    return [StudyBlock.model_validate(r) for r in query.order_by(StudyBlockRecord.start_time).all()]

def get_blocks_for_week(db: Session, week_start: date) -> List[StudyBlock]:
    start = datetime.combine(week_start, datetime.min.time())
    return get_study_blocks(db, start, start + timedelta(days=7))

def delete_study_block(db: Session, block_id: int) -> bool:
    record = db.query(StudyBlockRecord).filter(StudyBlockRecord.id == block_id).first()
    if not record:
        return False
    db.delete(record)
    db.commit()
    return True

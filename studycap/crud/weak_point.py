from sqlalchemy.orm import Session
from studycap.models import WeakPointRecord
from studycap.schemas import WeakPoint
from studycap.weak_points import WeakPointTracker, normalize_topic

def load_tracker(db: Session) -> WeakPointTracker:
    """Build a tracker from the stored weak points, oldest first"""
    rows = db.query(WeakPointRecord).order_by(WeakPointRecord.id).all()
    return WeakPointTracker(WeakPoint.model_validate(row) for row in rows)

def save_tracker(db: Session, tracker: WeakPointTracker, commit: bool = True):
    """Make the weak_points table mirror the tracker (pruned topics are deleted)"""
    snapshot = {normalize_topic(wp.topic): wp for wp in tracker.entries()}
    existing = {row.topic_key: row for row in db.query(WeakPointRecord).all()}
    
    for key, row in existing.items():
        if key not in snapshot:
            db.delete(row)
    
    for key, wp in snapshot.items():
        row = existing.get(key)
        if row:
            row.count = wp.count
            row.last_failed_at = wp.last_failed_at
        else:
            db.add(WeakPointRecord(
                topic=wp.topic,
                topic_key=key,
                count=wp.count,
                last_failed_at=wp.last_failed_at
            ))
    
    if commit:
        db.commit()

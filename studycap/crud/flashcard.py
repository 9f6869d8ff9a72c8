from sqlalchemy.orm import Session
from studycap.clock import utcnow
from studycap.crud.weak_point import load_tracker, save_tracker
from studycap.due import due_items, study_set
from studycap.models import Flashcard
from studycap.schemas import ReviewState
from studycap.sm2 import SM2Algorithm
from datetime import datetime
from typing import Dict, List, Optional

def create_flashcard(
    db: Session,
    front: str,
    back: str,
    topic: Optional[str] = None,
    now: Optional[datetime] = None
) -> Flashcard:
    """Create a flashcard with default SM-2 state, due immediately"""
    state = SM2Algorithm.initialize_item(item_id=0, now=now)
    card = Flashcard(
        front=front,
        back=back,
        topic=topic,
        ease_factor=state.ease_factor,
        interval_days=state.interval_days,
        repetitions=state.repetitions,
        next_review_at=state.next_review_at
    )
    db.add(card)
    db.commit()
    db.refresh(card)
    return card

def import_flashcards(db: Session, cards: List[Dict], now: Optional[datetime] = None) -> List[Flashcard]:
    """Bulk-create flashcards from parsed rows (front/back/topic dicts)"""
    state = SM2Algorithm.initialize_item(item_id=0, now=now)
    records = []
    for item in cards:
        card = Flashcard(
            front=item["front"],
            back=item["back"],
            topic=item.get("topic"),
            ease_factor=state.ease_factor,
            interval_days=state.interval_days,
            repetitions=state.repetitions,
            next_review_at=state.next_review_at
        )
        db.add(card)
        records.append(card)
    db.commit()
    for card in records:
        db.refresh(card)
    return records

def get_flashcard(db: Session, card_id: int) -> Optional[Flashcard]:
    """Get flashcard by ID"""
    return db.query(Flashcard).filter(Flashcard.id == card_id).first()

def get_flashcards(db: Session) -> List[Flashcard]:
    """Get all flashcards, soonest review first"""
    return db.query(Flashcard).order_by(Flashcard.next_review_at, Flashcard.id).all()

def get_due_flashcards(db: Session, now: Optional[datetime] = None) -> List[Flashcard]:
    """Get all flashcards due for review"""
    return due_items(get_flashcards(db), now or utcnow())

def get_study_cards(db: Session, now: Optional[datetime] = None, shuffle: bool = False) -> List[Flashcard]:
    """Cards for a study session: the due ones, or every card when none are due"""
    return study_set(get_flashcards(db), now or utcnow(), shuffle=shuffle)

def review_flashcard(db: Session, card_id: int, quality: int, now: Optional[datetime] = None) -> Optional[Flashcard]:
    """
    Apply a review to a flashcard and update the weak points.
    
    Args:
        quality: 0-5; 0-2 marks the card's topic weak, 4-5 counts as mastery
    
    Raises:
        InvalidQualityInput: quality outside 0-5 (nothing is written)
    """
    SM2Algorithm.validate_quality(quality)
    card = get_flashcard(db, card_id)
    if not card:
        return None
    
    now = now or utcnow()
    state = SM2Algorithm.schedule(ReviewState.model_validate(card), quality, now)
    card.ease_factor = state.ease_factor
    card.interval_days = state.interval_days
    card.repetitions = state.repetitions
    card.last_reviewed_at = state.last_reviewed_at
    card.next_review_at = state.next_review_at
    
    tracker = load_tracker(db)
    tracker.record_review(card.weak_point_topic, quality, now)
    save_tracker(db, tracker, commit=False)
    
    db.commit()
    db.refresh(card)
    return card

def delete_flashcard(db: Session, card_id: int) -> bool:
    """Delete a flashcard; returns False if it does not exist"""
    card = get_flashcard(db, card_id)
    if not card:
        return False
    db.delete(card)
    db.commit()
    return True

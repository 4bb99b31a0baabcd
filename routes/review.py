from fastapi import APIRouter, Depends, HTTPException
from db.database import get_db
from models.item import ReviewCreate, RecallCreate
from routes.activity import activity_payload
from utils.engine import get_engine
from utils.grading import grade_recall, token_diff

router = APIRouter()


def review_payload(result) -> dict:
    outcome = result.outcome
    payload = activity_payload(result.activity)
    payload.update({
        "item": outcome.after.model_dump(),
        "quality": outcome.quality,
        "is_correct": outcome.is_correct,
        "first_review": outcome.first_review,
        "newly_mastered": outcome.newly_mastered,
    })
    return payload


@router.post("/{item_id}")
async def submit_review(item_id: int, review: ReviewCreate, conn = Depends(get_db), engine = Depends(get_engine)):
    """Record a self-rated recall (quality 0-5, clamped)."""
    result = engine.review(conn, item_id, review.quality)
    if result is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return review_payload(result)


@router.post("/{item_id}/recall")
async def submit_recall(item_id: int, recall: RecallCreate, conn = Depends(get_db), engine = Depends(get_engine)):
    """Grade a typed recall of the item's text, then record it as a review."""
    item = engine.scheduler.get_item(conn, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    quality = grade_recall(item.word, recall.typed, engine.config)
    result = engine.review(conn, item_id, quality)
    payload = review_payload(result)
    payload["diff"] = token_diff(item.word, recall.typed)
    return payload

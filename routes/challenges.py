from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from db.database import get_db
from models.challenge import ChallengeProgressUpdate
from utils.engine import get_engine

router = APIRouter()


@router.get("/today")
async def todays_challenges(conn = Depends(get_db), engine = Depends(get_engine)):
    """Today's challenges, generated on the first request of the day."""
    return engine.challenges.ensure_todays_challenges(conn)


@router.get("/stats")
async def challenge_stats(conn = Depends(get_db), engine = Depends(get_engine)):
    return {
        "total_completed": engine.challenges.total_completed(conn),
        "by_type": engine.challenges.completions_by_type(conn),
    }


@router.post("/cleanup")
async def cleanup(older_than_days: Optional[int] = Query(None, ge=0), conn = Depends(get_db), engine = Depends(get_engine)):
    if older_than_days is None:
        older_than_days = engine.config.get("challenges", {}).get("cleanup_after_days", 7)
    return {"removed": engine.challenges.cleanup_old_challenges(conn, older_than_days)}


@router.post("/{challenge_id}/progress")
async def challenge_progress(
    challenge_id: int,
    update: ChallengeProgressUpdate,
    conn = Depends(get_db),
    engine = Depends(get_engine),
):
    challenge = engine.challenges.increment_progress(conn, challenge_id, update.amount)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return challenge


@router.post("/{challenge_id}/complete")
async def complete(challenge_id: int, conn = Depends(get_db), engine = Depends(get_engine)):
    challenge = engine.challenges.complete_challenge(conn, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return challenge

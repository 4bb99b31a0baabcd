from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
from db.database import get_db
from models.badge import BadgeCategory, BadgeProgressUpdate
from utils.engine import get_engine

router = APIRouter()


@router.get("/")
async def list_badges(
    category: Optional[BadgeCategory] = None,
    earned: Optional[bool] = None,
    conn = Depends(get_db),
    engine = Depends(get_engine),
):
    """Badge catalog with earned state; earned badges first."""
    badges = engine.badges.list_badges(conn, category, earned)
    return {"earned_count": engine.badges.earned_count(conn), "badges": badges}


@router.get("/{badge_id}")
async def get_badge(badge_id: str, conn = Depends(get_db), engine = Depends(get_engine)):
    badge = engine.badges.get_badge(conn, badge_id)
    if not badge:
        raise HTTPException(status_code=404, detail="Badge not found")
    return badge


@router.post("/{badge_id}/award")
async def award_badge(badge_id: str, conn = Depends(get_db), engine = Depends(get_engine)):
    return {"badge_id": badge_id, "outcome": engine.badges.award(conn, badge_id)}


@router.post("/{badge_id}/progress")
async def badge_progress(badge_id: str, update: BadgeProgressUpdate, conn = Depends(get_db), engine = Depends(get_engine)):
    badge = engine.badges.update_progress(conn, badge_id, update.progress)
    if not badge:
        raise HTTPException(status_code=404, detail="Badge not found")
    return badge

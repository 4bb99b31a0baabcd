from dataclasses import asdict
from datetime import timedelta
from fastapi import APIRouter, Depends, Query
from typing import Optional
from db.database import get_db
from models.progress import XpAwardCreate
from routes.activity import activity_payload
from utils.daily_activity import activity_calendar, recent_days, total_active_days
from utils.engine import get_engine

router = APIRouter()


@router.get("/stats")
async def get_stats(conn = Depends(get_db), engine = Depends(get_engine)):
    return engine.ledger.get_stats(conn)


@router.post("/xp")
async def award_xp(award: XpAwardCreate, conn = Depends(get_db), engine = Depends(get_engine)):
    result = engine.ledger.award_xp(conn, award.amount, award.source, award.description, award.related_id)
    return asdict(result)


@router.get("/transactions")
async def transactions(limit: int = Query(50, ge=0), conn = Depends(get_db), engine = Depends(get_engine)):
    return engine.ledger.recent_transactions(conn, limit)


@router.get("/xp-by-source")
async def xp_by_source(conn = Depends(get_db), engine = Depends(get_engine)):
    return engine.ledger.xp_by_source(conn)


@router.post("/checkin")
async def check_in(hour: Optional[int] = Query(None, ge=0, le=23), conn = Depends(get_db), engine = Depends(get_engine)):
    """Daily app-open: login XP, streak, today's challenges and time-of-day badges."""
    return activity_payload(engine.activity.app_opened(conn, hour))


@router.get("/calendar")
async def calendar(days: int = Query(30, ge=1, le=366), conn = Depends(get_db), engine = Depends(get_engine)):
    """XP and activity per day for the last `days` days (heatmap data)."""
    end = engine.clock.today()
    start = end - timedelta(days=days - 1)
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "days": activity_calendar(conn, start, end),
        "total_active_days": total_active_days(conn),
    }


@router.get("/days")
async def recent_activity_days(limit: int = Query(30, ge=0), conn = Depends(get_db)):
    return recent_days(conn, limit)


@router.post("/maintenance")
async def maintenance(conn = Depends(get_db), engine = Depends(get_engine)):
    return engine.run_maintenance(conn)

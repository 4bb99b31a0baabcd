from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from db.database import get_db
from models.item import LearningItemCreate, LearningStatus
from utils.engine import get_engine
import sqlite3

router = APIRouter()


@router.get("/")
async def list_items(status: Optional[LearningStatus] = None, conn = Depends(get_db), engine = Depends(get_engine)):
    return engine.scheduler.list_items(conn, status)


@router.post("/", status_code=201)
async def create_item(item: LearningItemCreate, conn = Depends(get_db), engine = Depends(get_engine)):
    """Add a word, quote or proverb to the review queue."""
    try:
        return engine.scheduler.add_item(conn, item)
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=400, detail="Item with this word already exists")


@router.get("/due")
async def due_items(limit: Optional[int] = Query(None, ge=0), conn = Depends(get_db), engine = Depends(get_engine)):
    """Items due for review now, most overdue first."""
    if limit is None:
        limit = engine.config.get("review", {}).get("due_limit", 20)
    return engine.scheduler.get_due(conn, limit)


@router.get("/new")
async def new_items(limit: int = Query(10, ge=0), conn = Depends(get_db), engine = Depends(get_engine)):
    return engine.scheduler.get_new(conn, limit)


@router.get("/counts")
async def item_counts(conn = Depends(get_db), engine = Depends(get_engine)):
    counts = engine.scheduler.count_by_status(conn)
    counts["due"] = engine.scheduler.due_count(conn)
    return counts


@router.get("/{item_id}")
async def get_item(item_id: int, conn = Depends(get_db), engine = Depends(get_engine)):
    item = engine.scheduler.get_item(conn, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.delete("/{item_id}")
async def delete_item(item_id: int, conn = Depends(get_db), engine = Depends(get_engine)):
    return {"deleted": engine.scheduler.delete_item(conn, item_id)}

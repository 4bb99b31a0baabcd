from fastapi import APIRouter, Depends
from db.database import get_db
from models.activity import JournalActivity, ChatMessageActivity, ActiveTimeActivity
from utils.activity import ActivityResult
from utils.engine import get_engine

router = APIRouter()


def activity_payload(result: ActivityResult) -> dict:
    """Flatten an ActivityResult into the JSON the client shows after an action."""
    level = result.stats.level if result.stats else None
    title = result.stats.level_title.value if result.stats else None
    return {
        "xp_awarded": result.xp_awarded,
        "leveled_up": result.leveled_up,
        "level": level,
        "level_title": title,
        "streak": result.streak.current_streak if result.streak else None,
        "streak_increased": bool(result.streak and result.streak.increased),
        "badges_earned": result.badges_earned,
        "challenges": [challenge.model_dump() for challenge in result.challenges],
    }


@router.post("/word-learned")
async def word_learned(conn = Depends(get_db), engine = Depends(get_engine)):
    return activity_payload(engine.activity.word_learned(conn))


@router.post("/word-mastered")
async def word_mastered(conn = Depends(get_db), engine = Depends(get_engine)):
    return activity_payload(engine.activity.word_mastered(conn))


@router.post("/journal")
async def journal_written(payload: JournalActivity, conn = Depends(get_db), engine = Depends(get_engine)):
    """Report a saved journal entry with its word count."""
    return activity_payload(engine.activity.journal_written(conn, payload.word_count))


@router.post("/conversation")
async def conversation_started(conn = Depends(get_db), engine = Depends(get_engine)):
    return activity_payload(engine.activity.conversation_started(conn))


@router.post("/chat-message")
async def chat_message(payload: ChatMessageActivity, conn = Depends(get_db), engine = Depends(get_engine)):
    """Report one sent message; conversation_message_count is the running count in its conversation."""
    return activity_payload(engine.activity.chat_message(conn, payload.conversation_message_count))


@router.post("/letter-written")
async def letter_written(conn = Depends(get_db), engine = Depends(get_engine)):
    return activity_payload(engine.activity.letter_written(conn))


@router.post("/letter-opened")
async def letter_opened(conn = Depends(get_db), engine = Depends(get_engine)):
    return activity_payload(engine.activity.letter_opened(conn))


@router.post("/commitment-kept")
async def commitment_kept(conn = Depends(get_db), engine = Depends(get_engine)):
    return activity_payload(engine.activity.commitment_kept(conn))


@router.post("/quote-read")
async def quote_read(conn = Depends(get_db), engine = Depends(get_engine)):
    return activity_payload(engine.activity.quote_read(conn))


@router.post("/active-time")
async def active_time(payload: ActiveTimeActivity, conn = Depends(get_db), engine = Depends(get_engine)):
    stats = engine.activity.active_time(conn, payload.seconds, payload.kind)
    return {"total_active_seconds": stats.total_active_seconds}

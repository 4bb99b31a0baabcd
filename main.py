import argparse
import logging
import uvicorn
from fastapi import FastAPI, Depends
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db, get_db
from config import load_config, CONFIG_DIR
from routes import items, review, progress, badges, challenges, activity  # Import routers
from utils.engine import build_engine, get_engine
from utils.levels import xp_to_next_title


def configure_logging(config) -> None:
    logging.basicConfig(
        level=config.get("logging", {}).get("level", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: config, logging, DB, engine
    config = load_config()  # Ensures config exists
    configure_logging(config)
    init_db()
    app.state.engine = build_engine(config)
    yield


app = FastAPI(title="Prody", description="Local-first learning progress and gamification engine", lifespan=lifespan)

# Include routers
app.include_router(items.router, prefix="/items", tags=["items"])
app.include_router(review.router, prefix="/review", tags=["review"])
app.include_router(progress.router, prefix="/progress", tags=["progress"])
app.include_router(badges.router, prefix="/badges", tags=["badges"])
app.include_router(challenges.router, prefix="/challenges", tags=["challenges"])
app.include_router(activity.router, prefix="/activity", tags=["activity"])


# Home - progress summary
@app.get("/")
async def home(conn = Depends(get_db), engine = Depends(get_engine)):
    stats = engine.ledger.get_stats(conn)
    return {
        "level": stats.level,
        "level_title": stats.level_title.display_name,
        "total_xp": stats.total_xp,
        "xp_to_next_title": xp_to_next_title(stats.total_xp),
        "current_streak": stats.current_streak,
        "due": engine.scheduler.due_count(conn),
        "badges_earned": engine.badges.earned_count(conn),
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Prody App")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    args = parser.parse_args()
    if args.init:
        configure_logging(load_config())  # Ensures config is copied if missing
        init_db()
        print(f"DB initialized and config copied to {CONFIG_DIR}/")
        sys.exit(0)
    # Run server
    port = 8000
    reload = args.dev
    uvicorn.run("main:app", host="127.0.0.1", port=port, reload=reload, log_level="info")

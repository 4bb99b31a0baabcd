# Routes package __init__.py - re-exports routers for main.py convenience
from .items import router as items_router
from .review import router as review_router
from .progress import router as progress_router
from .badges import router as badges_router
from .challenges import router as challenges_router
from .activity import router as activity_router

__all__ = ['items_router', 'review_router', 'progress_router', 'badges_router', 'challenges_router', 'activity_router']

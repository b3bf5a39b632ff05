"""
API v1 routes.
"""

from fastapi import APIRouter

from deepread.api.v1 import auth, books, ideas, maintenance, practice_sessions, profile, streak

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(books.router, prefix="/books", tags=["Books"])
router.include_router(ideas.router, prefix="/ideas", tags=["Ideas"])
router.include_router(practice_sessions.router, prefix="/practice-sessions", tags=["Practice Sessions"])
router.include_router(profile.router, prefix="/profile", tags=["Profile"])
router.include_router(streak.router, prefix="/streak", tags=["Streak"])
router.include_router(maintenance.router, prefix="/maintenance", tags=["Maintenance"])

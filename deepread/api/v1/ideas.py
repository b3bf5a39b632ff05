"""
Idea, progress and primer endpoints.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from deepread.ai.primer_service import PrimerGenerationError
from deepread.api.deps import CurrentUser, DbSession, Primers
from deepread.engines.mastery.progress_tracker import ProgressTracker
from deepread.engines.streak.streak_manager import StreakManager
from deepread.kernel.models.idea import Idea
from deepread.logging_config import get_logger
from deepread.schemas.idea import (
    IdeaResponse,
    ProgressCreate,
    ProgressRecordResponse,
    ProgressResponse,
)
from deepread.schemas.primer import PrimerResponse

router = APIRouter()
logger = get_logger(__name__)


async def _get_idea_or_404(db, idea_id: str) -> Idea:
    idea = await db.get(Idea, idea_id)
    if not idea:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Idea not found",
        )
    return idea


@router.get("/{idea_id}", response_model=IdeaResponse)
async def get_idea(
    idea_id: str,
    user: CurrentUser,
    db: DbSession,
):
    """Open an idea. Updates its access time."""
    idea = await ProgressTracker(db).touch_idea(idea_id)
    if not idea:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Idea not found",
        )
    return IdeaResponse.model_validate(idea)


@router.post("/{idea_id}/progress", response_model=ProgressRecordResponse, status_code=status.HTTP_201_CREATED)
async def record_progress(
    idea_id: str,
    data: ProgressCreate,
    user: CurrentUser,
    db: DbSession,
):
    """
    Record a completed attempt.

    The attempt's mastery level is derived from its score and level; the
    idea's mastery level only ever goes up. Completing practice lights
    today's streak.
    """
    tracker = ProgressTracker(db)
    progress = await tracker.record_completion(
        idea_id,
        level=data.level,
        score=data.score,
        completed_at=data.completed_at,
    )
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Idea not found",
        )
    await StreakManager(db).mark_activity()

    idea = await _get_idea_or_404(db, idea_id)
    return ProgressRecordResponse(
        progress=ProgressResponse.model_validate(progress),
        idea_mastery_level=idea.mastery_level,
    )


@router.get("/{idea_id}/progress", response_model=List[ProgressResponse])
async def list_progress(
    idea_id: str,
    user: CurrentUser,
    db: DbSession,
):
    """All attempts for an idea, oldest first."""
    await _get_idea_or_404(db, idea_id)
    attempts = await ProgressTracker(db).get_progress(idea_id)
    return [ProgressResponse.model_validate(p) for p in attempts]


@router.get("/{idea_id}/primer", response_model=PrimerResponse)
async def get_primer(
    idea_id: str,
    user: CurrentUser,
    db: DbSession,
    primers: Primers,
):
    """Get the idea's primer."""
    await _get_idea_or_404(db, idea_id)
    primer = await primers.get_primer(idea_id)
    if not primer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Primer not found",
        )
    return PrimerResponse.model_validate(primer)


@router.post("/{idea_id}/primer", response_model=PrimerResponse, status_code=status.HTTP_201_CREATED)
async def generate_primer(
    idea_id: str,
    user: CurrentUser,
    db: DbSession,
    primers: Primers,
):
    """Generate the idea's primer, replacing any existing one."""
    idea = await _get_idea_or_404(db, idea_id)
    try:
        primer = await primers.refresh_primer(idea)
    except PrimerGenerationError as e:
        logger.warning("Primer generation failed for %s: %s", idea_id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )
    return PrimerResponse.model_validate(primer)

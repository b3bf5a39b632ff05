"""
Practice session endpoints.
"""

import uuid

from fastapi import APIRouter, HTTPException, status

from deepread.api.deps import CurrentUser, DbSession
from deepread.kernel.models.idea import Idea
from deepread.kernel.models.practice_session import PracticeSession
from deepread.orchestration.state_machine import PracticeSessionStateMachine
from deepread.schemas.practice_session import (
    PracticeSessionCreate,
    PracticeSessionResponse,
    PracticeSessionTransition,
    TestResponse,
)

router = APIRouter()


def _to_response(practice_session: PracticeSession) -> PracticeSessionResponse:
    review_ids = practice_session.lesson_practice_review_item_id_set()
    return PracticeSessionResponse(
        id=practice_session.id,
        idea_id=practice_session.idea_id,
        book_id=practice_session.book_id,
        type=practice_session.type,
        status=practice_session.status,
        config_version=practice_session.config_version,
        review_item_ids=sorted(review_ids, key=str) if review_ids is not None else None,
        test=TestResponse.model_validate(practice_session.test) if practice_session.test else None,
        created_at=practice_session.created_at,
        updated_at=practice_session.updated_at,
    )


@router.post("", response_model=PracticeSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_practice_session(
    data: PracticeSessionCreate,
    user: CurrentUser,
    db: DbSession,
):
    """Start a practice session for an idea. New sessions are `ready`."""
    idea = await db.get(Idea, data.idea_id)
    if not idea:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Idea not found",
        )
    practice_session = await PracticeSessionStateMachine(db).create_session(
        idea,
        session_type=data.type,
        review_item_ids=data.review_item_ids,
        test_type=data.test_type,
    )
    return _to_response(practice_session)


@router.get("/{session_id}", response_model=PracticeSessionResponse)
async def get_practice_session(
    session_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
):
    practice_session = await PracticeSessionStateMachine(db).get_session(session_id)
    if not practice_session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Practice session not found",
        )
    return _to_response(practice_session)


@router.post("/{session_id}/transition", response_model=PracticeSessionResponse)
async def transition_practice_session(
    session_id: uuid.UUID,
    data: PracticeSessionTransition,
    user: CurrentUser,
    db: DbSession,
):
    """Move a session along ready -> in_progress -> completed, or expire it."""
    machine = PracticeSessionStateMachine(db)
    practice_session = await machine.get_session(session_id)
    if not practice_session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Practice session not found",
        )
    try:
        practice_session = await machine.transition(practice_session, data.status)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    return _to_response(practice_session)

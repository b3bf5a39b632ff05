"""
Maintenance endpoints.
"""

from fastapi import APIRouter, Request, status

from deepread.api.deps import CurrentUser
from deepread.config import get_settings
from deepread.logging_config import get_logger
from deepread.schemas.common import ForegroundResponse

router = APIRouter()
logger = get_logger(__name__)


@router.post("/foreground", response_model=ForegroundResponse, status_code=status.HTTP_202_ACCEPTED)
async def app_foregrounded(
    request: Request,
    user: CurrentUser,
):
    """
    The client came back to the foreground: schedule a duplicate cleanup.

    The cleanup runs in the background and waits for any migration or
    cleanup already in progress.
    """
    runner = getattr(request.app.state, "maintenance", None)
    if runner is None or not get_settings().maintenance_enabled:
        return ForegroundResponse(scheduled=False)
    runner.run_foreground()
    logger.debug("Foreground cleanup scheduled")
    return ForegroundResponse(scheduled=True)

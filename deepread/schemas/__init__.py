"""
Pydantic schemas for API request/response validation.
"""

from deepread.schemas.auth import (
    AppleSignInRequest,
    AuthStatusResponse,
    CloudStatusRequest,
    CloudStatusResponse,
    TokenResponse,
)
from deepread.schemas.book import (
    BookCreate,
    BookDetailResponse,
    BookResponse,
    BookUpdate,
    MasterySummaryResponse,
)
from deepread.schemas.idea import (
    IdeaCreate,
    IdeaResponse,
    IdeasReplaceRequest,
    ProgressCreate,
    ProgressRecordResponse,
    ProgressResponse,
)
from deepread.schemas.primer import PrimerLinkSchema, PrimerResponse
from deepread.schemas.practice_session import (
    PracticeSessionCreate,
    PracticeSessionResponse,
    PracticeSessionTransition,
    TestResponse,
)
from deepread.schemas.profile import ProfileResponse, ProfileUpdate
from deepread.schemas.streak import ActivityRequest, ActivityResponse, StreakResponse
from deepread.schemas.common import ErrorResponse, ForegroundResponse, HealthResponse, SuccessResponse

__all__ = [
    # Auth
    "AppleSignInRequest",
    "AuthStatusResponse",
    "CloudStatusRequest",
    "CloudStatusResponse",
    "TokenResponse",
    # Books
    "BookCreate",
    "BookDetailResponse",
    "BookResponse",
    "BookUpdate",
    "MasterySummaryResponse",
    # Ideas
    "IdeaCreate",
    "IdeaResponse",
    "IdeasReplaceRequest",
    "ProgressCreate",
    "ProgressRecordResponse",
    "ProgressResponse",
    # Primers
    "PrimerLinkSchema",
    "PrimerResponse",
    # Practice
    "PracticeSessionCreate",
    "PracticeSessionResponse",
    "PracticeSessionTransition",
    "TestResponse",
    # Profile / streak
    "ProfileResponse",
    "ProfileUpdate",
    "ActivityRequest",
    "ActivityResponse",
    "StreakResponse",
    # Common
    "ErrorResponse",
    "ForegroundResponse",
    "HealthResponse",
    "SuccessResponse",
]

"""
Deepread API.

    uvicorn deepread.main:app

`create_app()` builds the application; the module-level `app` is what
uvicorn serves.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from deepread.api.deps import DbSession
from deepread.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from deepread.api.v1 import router as api_v1_router
from deepread.config import get_settings
from deepread.database import async_session_maker, close_db, init_db, ping_db
from deepread.logging_config import configure_logging, get_logger
from deepread.orchestration.maintenance import MaintenanceRunner
from deepread.schemas.common import ErrorResponse, HealthResponse

settings = get_settings()
logger = get_logger(__name__)

DESCRIPTION = """
Learn the ideas in a book by practicing them.

- **Books & Ideas**: extracted ideas are stored under book-specific ids
- **Practice**: attempts at three levels (Do, Question, Reinvent)
- **Mastery**: scores map to a 0-3 mastery level that never goes down
- **Primers**: one-page AI primers per idea
- **Streaks**: consecutive days with practice
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Create the schema, then serve while maintenance runs in the background."""
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )
    logger.info("Starting %s v%s (%s)", settings.project_name, settings.version, settings.environment)
    await init_db()

    runner = MaintenanceRunner(async_session_maker)
    app.state.maintenance = runner
    if settings.maintenance_enabled:
        runner.start()
    else:
        logger.info("Startup maintenance disabled")

    yield

    await runner.cancel()
    await close_db()
    logger.info("Shut down")


def _correlation(request: Request) -> Dict[str, str]:
    request_id = getattr(request.state, "request_id", None)
    return {REQUEST_ID_HEADER: request_id} if request_id else {}


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        body = ErrorResponse(detail=str(exc.detail))
        if exc.status_code >= 500:
            body.request_id = getattr(request.state, "request_id", None)
        return JSONResponse(
            status_code=exc.status_code,
            content=body.model_dump(exclude_none=True),
            headers={**(exc.headers or {}), **_correlation(request)},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": "Validation error", "errors": errors},
            headers=_correlation(request),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = ErrorResponse(
            detail=f"{type(exc).__name__}: {exc}" if settings.debug else "Internal server error",
            code="internal_error",
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(exclude_none=True),
            headers=_correlation(request),
        )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        description=DESCRIPTION,
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )

    # Last added runs first: CORS wraps the request-id middleware
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    _register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(db: DbSession):
        key = settings.openai_api_key.strip()
        return HealthResponse(
            status="ok",
            version=settings.version,
            database="connected" if await ping_db(db) else "unavailable",
            ai_configured=bool(key) and not key.startswith("sk-your-"),
        )

    app.include_router(api_v1_router, prefix=settings.api_v1_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("deepread.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

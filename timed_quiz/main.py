"""
Timed Quiz API - Main Application
Server-authoritative quiz sessions, scoring and a live leaderboard
FILE: timed_quiz/main.py
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging
import time

from timed_quiz.core.config import Settings, settings as default_settings
from timed_quiz.db.mongodb import (
    connect_to_mongo,
    close_mongo_connection,
    get_database,
    ping_mongo
)
from timed_quiz.db.question_store import MemoryQuestionStore, MongoQuestionStore
from timed_quiz.db.session_store import MemorySessionStore, MongoSessionStore
from timed_quiz.services.leaderboard import Leaderboard
from timed_quiz.services.question_bank import QuestionBank
from timed_quiz.services.quiz_engine import QuizEngine
from timed_quiz.api.quiz import router as quiz_router
from timed_quiz.api.leaderboard import router as leaderboard_router
from timed_quiz.api.admin import router as admin_router

# Configure logging
logging.basicConfig(
    level=default_settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def init_services(app: FastAPI, settings: Settings) -> None:
    """Build stores and services for the configured backend and attach them to app.state"""
    if settings.storage_backend == "mongodb":
        await connect_to_mongo(settings.mongodb_url)
        db = get_database()
        question_store = MongoQuestionStore(db)
        session_store = MongoSessionStore(db)
    else:
        question_store = MemoryQuestionStore()
        session_store = MemorySessionStore()

    await question_store.ensure_indexes()
    await session_store.ensure_indexes()

    bank = QuestionBank(question_store)
    await bank.init_config(settings.quiz_question_count, settings.quiz_duration_ms)

    leaderboard = Leaderboard(queue_size=settings.stream_queue_size)
    await leaderboard.hydrate(await session_store.list_submitted())

    app.state.settings = settings
    app.state.question_bank = bank
    app.state.session_store = session_store
    app.state.leaderboard = leaderboard
    app.state.quiz_engine = QuizEngine(
        bank,
        session_store,
        leaderboard,
        late_policy=settings.late_submission_policy,
        late_grace_ms=settings.late_grace_ms
    )


def create_app(settings: Settings = None) -> FastAPI:
    """Application factory"""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        logger.info(f"🚀 Starting Timed Quiz API ({settings.storage_backend} storage)...")

        try:
            await init_services(app, settings)
            logger.info("✓ Services initialized")
        except Exception as e:
            logger.error(f"❌ Startup error: {e}")
            raise

        yield

        logger.info("🛑 Shutting down Timed Quiz API...")
        if settings.storage_backend == "mongodb":
            await close_mongo_connection()
        logger.info("✓ Cleanup complete")

    app = FastAPI(
        title="Timed Quiz API",
        description="""
    Timed, server-authoritative quiz with a live leaderboard.

    ## Endpoints
    - **Quiz**: `/quiz/start`, `/quiz/session/{id}`, `/quiz/submit`
    - **Leaderboard**: `/leaderboard`, `/leaderboard/stream` (Server-Sent Events)
    - **Admin**: `/quiz/admin/*` - questions and quiz config (X-Admin-Code header)
    - **Health**: `/health`

    All timestamps are epoch milliseconds.
    """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request timing middleware
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time to response headers"""
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000  # Convert to ms
        response.headers["X-Process-Time-Ms"] = str(round(process_time, 2))
        return response

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming requests"""
        logger.info(f"📨 {request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(
            f"📤 {request.method} {request.url.path} - "
            f"Status: {response.status_code}"
        )
        return response

    # ==================== ERROR BODIES ====================

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            content = exc.detail
        else:
            content = {"error": str(exc.detail), "code": "HTTPError"}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=400,
            content={
                "error": f"{field}: {message}" if field else message,
                "code": "ValidationError"
            }
        )

    # ==================== INCLUDE ROUTERS ====================

    app.include_router(quiz_router)
    app.include_router(leaderboard_router)
    app.include_router(admin_router)

    # ==================== ROOT ENDPOINTS ====================

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information"""
        return {
            "message": "Timed Quiz API",
            "version": app.version,
            "status": "operational",
            "endpoints": {
                "docs": "/docs",
                "start": "/quiz/start",
                "session": "/quiz/session/{sessionId}",
                "submit": "/quiz/submit",
                "leaderboard": "/leaderboard",
                "leaderboard_stream": "/leaderboard/stream",
                "health": "/health"
            }
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check for the storage backend and quiz readiness

        Returns 503 when storage is unreachable or the bank cannot fill
        a quiz with the active config.
        """
        health_status = {
            "status": "healthy",
            "timestamp": int(time.time() * 1000),
            "components": {}
        }
        overall_healthy = True

        if settings.storage_backend == "mongodb":
            if await ping_mongo():
                health_status["components"]["mongodb"] = {"status": "healthy"}
            else:
                overall_healthy = False
                health_status["components"]["mongodb"] = {
                    "status": "unhealthy",
                    "message": "Connection failed"
                }

        try:
            bank = request.app.state.question_bank
            config = await bank.get_config()
            available = await bank.count_questions()
            ready = available >= config.questionCount
            health_status["components"]["question_bank"] = {
                "status": "healthy" if ready else "degraded",
                "questions": available,
                "questionCount": config.questionCount,
                "durationMs": config.durationMs,
                "configVersion": config.version
            }
            overall_healthy = overall_healthy and ready
        except Exception as e:
            overall_healthy = False
            health_status["components"]["question_bank"] = {
                "status": "unhealthy",
                "message": str(e)
            }
            logger.error(f"❌ Question bank health check failed: {e}")

        health_status["components"]["leaderboard"] = {
            "status": "healthy",
            "entries": len(request.app.state.leaderboard),
            "subscribers": request.app.state.leaderboard.subscriber_count
        }

        health_status["status"] = "healthy" if overall_healthy else "degraded"
        return JSONResponse(
            status_code=200 if overall_healthy else 503,
            content=health_status
        )

    return app


app = create_app()


# ==================== RUN APPLICATION ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "timed_quiz.main:app",
        host="0.0.0.0",
        port=4000,
        reload=True,
        log_level="info"
    )

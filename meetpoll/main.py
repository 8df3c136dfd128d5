import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401 - register models with Base
from .config import ALLOWED_ORIGINS, SCHEDULER_ENABLED
from .database import Base, engine
from .domain.confirmation import router as confirmation_router
from .errors import ConfirmationError
from .workers.deadline_scheduler import DeadlineScheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    scheduler = None
    if SCHEDULER_ENABLED:
        scheduler = DeadlineScheduler()
        scheduler.start()
        app.state.deadline_scheduler = scheduler
    else:
        logger.info("Deadline scheduler disabled in this process")

    yield

    logger.info("Application shutting down...")
    if scheduler is not None:
        await scheduler.stop()


app = FastAPI(title="Meetpoll API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(ConfirmationError)
async def confirmation_exception_handler(request: Request, exc: ConfirmationError):
    """Render confirmation errors as {code, message, timestamp}"""
    logger.warning(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": exc.code,
            "message": exc.message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(confirmation_router)


@app.get("/")
def root():
    return {"message": "Meetpoll API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}

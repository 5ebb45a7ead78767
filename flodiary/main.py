import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

# Load environment variables as early as possible
load_dotenv()

from .core.config import settings
from .exceptions import (
    FlodiaryError,
    create_success_response,
    flodiary_exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .infrastructure.persistence.sqlalchemy.database import create_db_and_tables
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware
from .routers import auth_router, cycles_router, prediction_router, users_router
from .utils import utc_now

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENV})...")
    await create_db_and_tables()
    logger.info("Database initialized successfully")
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(FlodiaryError, flodiary_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)

app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(cycles_router.router)
app.include_router(prediction_router.router)


@app.get("/api/health")
async def health_check():
    return create_success_response({
        "status": "OK",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": utc_now().isoformat(),
    })


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "flodiary.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=1,
        log_level=settings.LOG_LEVEL.lower()
    )

# tutorbill/main.py - FastAPI application, middleware and error mapping
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import traceback
import time

from tutorbill.core.config import settings
from tutorbill.core.db import db_manager, get_engine
from tutorbill.core.errors import TutorBillError
from tutorbill.models.base import Base
import tutorbill.models  # noqa: F401  registers all tables on Base.metadata
from tutorbill.api.routers import auth, students, attendance, schedules, invoices, public
from tutorbill.api.routers import analytics, messages, expenses, backup
from tutorbill.api.routers import settings as settings_router


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting TutorBill API...")
    logger.info(f"Environment: {settings.ENV}")
    logger.info(f"Database URL: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'local'}")

    engine = get_engine()

    # Create tables if they don't exist (for development)
    if settings.is_development:
        logger.info("Creating database tables...")
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Error creating tables: {e}")

    yield

    logger.info("Shutting down TutorBill API...")
    db_manager.close()


app = FastAPI(
    title=settings.API_TITLE,
    description="Invoices and quotations from monthly class attendance",
    version=settings.API_VERSION,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    logger.info(f"Incoming {request.method} {request.url.path}")

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Error processing {request.method} {request.url.path}: {str(e)}")
        logger.error(traceback.format_exc())
        raise

    process_time = time.time() - start_time
    logger.info(f"Response {response.status_code} for {request.method} {request.url.path} ({process_time:.3f}s)")
    return response


app.add_middleware(CORSMiddleware, **settings.get_cors_config())


@app.exception_handler(TutorBillError)
async def domain_exception_handler(request: Request, exc: TutorBillError):
    """NotFoundError -> 404, ValidationError -> 400, StoreError -> 503"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}")
    logger.error(traceback.format_exc())

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={
                "detail": str(exc),
                "traceback": traceback.format_exc()
            }
        )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


@app.get("/health")
async def health_check():
    database = db_manager.health_check()
    return {
        "status": "healthy" if database["status"] == "healthy" else "degraded",
        "environment": settings.ENV,
        "version": settings.API_VERSION,
        "database": database,
    }


# Include routers
logger.info("Registering API routers...")
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(students.router, prefix="/api/students", tags=["Students"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(schedules.router, prefix="/api/schedules", tags=["Schedules"])
app.include_router(invoices.router, prefix="/api/invoices", tags=["Invoices"])
app.include_router(settings_router.router, prefix="/api/settings", tags=["Settings"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
app.include_router(messages.router, prefix="/api/messages", tags=["Messages"])
app.include_router(expenses.router, prefix="/api/expenses", tags=["Expenses"])
app.include_router(backup.router, prefix="/api/backup", tags=["Backup"])
app.include_router(public.router, tags=["Public"])
logger.info("All routers registered successfully")


@app.get("/")
async def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs_url": "/docs" if settings.is_development else "Documentation disabled in production",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tutorbill.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)

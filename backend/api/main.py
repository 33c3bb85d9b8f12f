"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import admin, owner, reader
from db import SessionLocal, init_db
from domain.errors import LibraryError
from services.accounts import AccountsService
from settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Create app
app = FastAPI(
    title="Library Lending API",
    description="Library inventory, issue requests and the issue registry",
    version="0.1.0",
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount static files for generated QR codes
media_path = Path(settings.MEDIA_ROOT)
media_path.mkdir(parents=True, exist_ok=True)
app.mount("/media", StaticFiles(directory=str(media_path)), name="media")

# Include routers
app.include_router(owner.router, prefix="/owner", tags=["owner"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(reader.router, prefix="/reader", tags=["reader"])


@app.exception_handler(LibraryError)
async def library_error_handler(request: Request, exc: LibraryError):
    """Render domain errors as {"error": message} with the error's status code."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.on_event("startup")
def startup_event():
    """Initialize database tables and the default owner on startup."""
    init_db()
    AccountsService(SessionLocal).seed_default_owner(
        settings.DEFAULT_OWNER_EMAIL, settings.DEFAULT_OWNER_PASSWORD
    )
    logger.info("Database initialized")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Library Lending API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}

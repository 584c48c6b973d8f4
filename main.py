from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from core.config import settings
from services.firebase_service import initialize_firebase

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initializes Firebase and reports missing provider keys before serving requests."""
    initialize_firebase()
    if not settings.GOOGLE_MAPS_API_KEY:
        logger.warning("GOOGLE_MAPS_API_KEY is not set; place extraction returns demo places.")
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; vibe analysis returns placeholder text.")
    yield
    logger.info("Eternal Hope API shutting down.")

app = FastAPI(
    title="Eternal Hope API",
    description="Private place journal for Khaled and Amal.",
    version="0.1.0",
    lifespan=lifespan,
)

# The map frontend runs on its own origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing fields and unknown authors/statuses are plain 400s."""
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    logger.info(f"Rejected {request.method} {request.url.path}: {errors}")
    return JSONResponse(status_code=400, content={"detail": errors})

@app.get("/", tags=["Root"])
def read_root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Eternal Hope API"}

@app.get("/health", tags=["Root"])
def health():
    return {"status": "healthy"}

# Include the routers
from api.routers import places, notes, photos, tags

# Mount all routers with the /api prefix
app.include_router(places.router, prefix="/api")
app.include_router(notes.router, prefix="/api")
app.include_router(photos.router, prefix="/api")
app.include_router(tags.router, prefix="/api")

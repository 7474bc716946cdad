# FastAPI entrypoint
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import configure_logging, settings
from .database import init_db
from .api import auth, houses, inspections, storage

logger = logging.getLogger(__name__)

# Create tables on startup (SQLite/Postgres compatible)
init_db()

app = FastAPI(title="HouseCheck API", version=__version__)

# CORS configuration based on environment
allowed_origins = ["*"] if settings.ENVIRONMENT == "development" else settings.cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)

# Custom exception handlers to ensure JSON responses for API errors
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())}
    )

# API routes
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(houses.router, prefix="/api/houses", tags=["Houses"])
app.include_router(inspections.house_router, prefix="/api/houses", tags=["Inspections"])
app.include_router(inspections.router, prefix="/api/inspections", tags=["Inspections"])
app.include_router(storage.router, prefix="/api/storage", tags=["Storage"])

@app.get("/health")
def health():
    return {"status": "ok"}


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Run the HouseCheck API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    configure_logging()
    logger.info(f"Starting HouseCheck API on {args.host}:{args.port} ({settings.ENVIRONMENT})")
    uvicorn.run("housecheck.app.main:app", host=args.host, port=args.port, reload=args.reload)

# edupeer/main.py

from dotenv import load_dotenv

# Load env variables
load_dotenv()

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.sessions import SessionMiddleware

from . import config
from .database import check_connection, init_db
from .exceptions import EdupeerError
from .routes import matches, pairing_requests, sessions, users

# --- App Configuration ---
logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

if config.SESSION_SECRET == config.DEV_SESSION_SECRET:
    logging.warning("SESSION_SECRET not set; using the development signing key.")


# --- Lifespan Event Handler ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Code here runs on startup
    logging.info("Starting EduPeer API...")
    init_db()

    yield

    # Code here runs on shutdown
    logging.info("Shutting down...")


app = FastAPI(
    title="EduPeer Skill Exchange",
    description="Match people who can teach each other, pair them up and schedule learning sessions.",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    SessionMiddleware,
    secret_key=config.SESSION_SECRET,
    max_age=config.SESSION_MAX_AGE,
    same_site="lax",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CORS_ORIGIN],
    allow_credentials=config.CORS_ORIGIN != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error Handlers ---
# Every error body is {"message": str}.

@app.exception_handler(EdupeerError)
async def domain_error_handler(request: Request, exc: EdupeerError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get('msg'))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logging.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# --- API Endpoints ---

app.include_router(users.router)
app.include_router(matches.router)
app.include_router(pairing_requests.router)
app.include_router(sessions.router)


@app.get("/health", status_code=200)
def health_check():
    """
    Checks the status of the service and its database connection.
    """
    try:
        check_connection()
    except Exception as e:
        logging.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "degraded",
                "details": {"database_connected": False, "database_error": str(e)},
            },
        )

    return {"status": "ok", "details": {"database_connected": True}}

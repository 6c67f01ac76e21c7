"""
AISync Account Service FastAPI Application.

Account lifecycle API for the AISync chatbot:
- Registration and login with stateless session tokens
- Password recovery and change
- TOTP two-factor authentication
- Profile, preferences and email change
- Saved chat sessions
"""

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.lifespan import lifespan
from api.routers import auth_router, sessions_router, health_router
from utils.errors import register_exception_handlers, unhandled_error_handler
from utils.monitoring import get_logger, set_correlation_id, clear_correlation_id, get_correlation_id
from config import settings

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="AISync Account Service",
    description="Authentication, two-factor, preferences and chat session storage for AISync.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    redirect_slashes=False,
)


# ============================================================================
# Middleware Stack (last added runs outermost)
# ============================================================================

@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Tag every log line of a request with one correlation ID and echo it back."""
    clear_correlation_id()
    incoming = request.headers.get(CORRELATION_HEADER)
    if incoming:
        set_correlation_id(incoming)
    correlation_id = get_correlation_id()

    try:
        response = await call_next(request)
    except Exception as exc:
        # 500 envelope rendered inside CORS, with the correlation header
        response = await unhandled_error_handler(request, exc)

    response.headers[CORRELATION_HEADER] = correlation_id
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", CORRELATION_HEADER],
    expose_headers=[CORRELATION_HEADER],
    max_age=600,
)


# ============================================================================
# Error Handling & Routers
# ============================================================================

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(sessions_router)

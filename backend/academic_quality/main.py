"""
Academic Quality Dashboard API.

Admins manage departments, courses, faculty and role assignments;
students submit anonymous course feedback without signing in; admins and
faculty read the aggregated results.

Run locally with:
    uvicorn academic_quality.main:app --reload
"""

import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from academic_quality.config import CORS_ORIGINS, DATABASE_URL
from academic_quality.database import create_tables, is_sqlite
from academic_quality.errors import AuthError, FieldValidationError, NotFoundError, StoreError
from academic_quality.logging_config import (
    generate_request_id, get_logger, log_with_context, request_id_var, setup_logging,
)
from academic_quality.routes import auth, courses, dashboard, departments, faculty, feedback, metrics, profiles
from academic_quality.services.auth_service import AuthEventStream

API_VERSION = "1.0.0"

setup_logging()
logger = get_logger("http")
auth_logger = get_logger("auth")
db_logger = get_logger("db")

if is_sqlite(DATABASE_URL):
    logger.info("SQLite backend: creating tables in place")
    create_tables()

app = FastAPI(
    title="Academic Quality Dashboard",
    description=(
        "Department, course and faculty administration, anonymous structured "
        "student feedback, and aggregated teaching quality metrics."
    ),
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# ── Session change stream ────────────────────────────────────
# Sign-in and sign-out publish here. The audit listener records each
# change on the auth channel; request handlers bind their own
# SessionContext for the duration of the call.
app.state.auth_events = AuthEventStream()


def audit_session_event(event, session):
    log_with_context(auth_logger, "INFO", f"Session {event.value.lower().replace('_', ' ')}",
                     context={"identity_id": getattr(session, "identity_id", None),
                              "session_id": getattr(session, "id", None)})


app.state.auth_events.subscribe(audit_session_event)


# ── Request tracing ──────────────────────────────────────────
@app.middleware("http")
async def trace_requests(request: Request, call_next):
    """
    Tag the request with an id, log its start and outcome, and mark API
    reads as non-cacheable so lists are always re-fetched after a write.

    The client address and user agent are never logged: anonymous
    feedback submissions go through this middleware too.
    """
    req_id = generate_request_id()
    request_id_var.set(req_id)
    started = time.perf_counter()

    log_with_context(logger, "INFO", f"{request.method} {request.url.path} started")
    try:
        response = await call_next(request)
    except Exception as e:
        log_with_context(logger, "ERROR",
                         f"{request.method} {request.url.path} failed: {type(e).__name__}: {e}",
                         extra_data={"duration_ms": round((time.perf_counter() - started) * 1000, 2)})
        raise

    response.headers["X-Request-ID"] = req_id
    if request.method == "GET" and request.url.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store"

    log_with_context(logger, "INFO",
                     f"{request.method} {request.url.path} finished with {response.status_code}",
                     extra_data={"status_code": response.status_code,
                                 "duration_ms": round((time.perf_counter() - started) * 1000, 2)})
    return response


# ── Domain errors → HTTP ─────────────────────────────────────
@app.exception_handler(FieldValidationError)
async def on_field_validation_error(request: Request, exc: FieldValidationError):
    return JSONResponse(status_code=422, content={"detail": "Validation failed", "errors": exc.errors})


@app.exception_handler(StoreError)
async def on_store_error(request: Request, exc: StoreError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(SQLAlchemyError)
async def on_database_error(request: Request, exc: SQLAlchemyError):
    """Database failures outside a guarded commit (reads, lazy loads)."""
    reason = str(getattr(exc, "orig", None) or exc).splitlines()[0]
    log_with_context(db_logger, "ERROR", f"Database request failed: {reason}",
                     context={"path": request.url.path})
    return JSONResponse(status_code=400, content={"detail": f"Database request failed: {reason}"})


@app.exception_handler(NotFoundError)
async def on_not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(AuthError)
async def on_auth_error(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


for router, tag in (
    (auth.router, "Auth"),
    (profiles.router, "Profiles"),
    (departments.router, "Departments"),
    (courses.router, "Courses"),
    (faculty.router, "Faculty"),
    (feedback.router, "Feedback"),
    (metrics.router, "Quality Metrics"),
    (dashboard.router, "Dashboard"),
):
    app.include_router(router, tags=[tag])


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "healthy", "service": "academic-quality-backend", "version": API_VERSION}


@app.get("/", tags=["Root"])
def root():
    """Service summary with the main entry points."""
    return {
        "service": "Academic Quality Dashboard",
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "sign_in": "POST /api/auth/sign-in",
            "submit_feedback": "POST /api/feedback",
            "departments": "GET /api/departments",
            "courses": "GET /api/courses",
            "faculty": "GET /api/faculty",
            "feedback_analysis": "GET /api/feedback/analysis",
            "quality_metrics": "GET /api/quality-metrics",
            "dashboard": "GET /api/dashboard/stats",
        },
    }

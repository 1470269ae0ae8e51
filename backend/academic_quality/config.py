"""
Runtime configuration.

Every setting is read from the environment once at import time. Domain
constants (rating bounds, semester range, field limits) live here too so
the validation and aggregation modules share one source of truth.
"""

import os

# ── Database ────────────────────────────────────────────────
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./academic_quality.db")

# ── Logging ─────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ── Authentication ──────────────────────────────────────────
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "academic-quality-secret-change-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))
REQUIRE_EMAIL_VERIFICATION = os.getenv("REQUIRE_EMAIL_VERIFICATION", "true").lower() in ("1", "true", "yes")

# ── HTTP ────────────────────────────────────────────────────
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# ── Domain limits ───────────────────────────────────────────
MIN_RATING = 1
MAX_RATING = 5
MIN_SEMESTER = 1
MAX_SEMESTER = 8
MIN_CREDITS = 1
MAX_CREDITS = 6
MAX_COMMENT_LENGTH = 1000
MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 50
DEFAULT_ACADEMIC_YEAR = "2024-25"
DEFAULT_DESIGNATION = "Assistant Professor"

# Feedback rating categories: (column name, display label)
RATING_CATEGORIES = [
    ("teaching_quality", "Teaching Quality"),
    ("course_content", "Course Content"),
    ("communication", "Communication"),
    ("punctuality", "Punctuality"),
    ("availability", "Availability"),
]

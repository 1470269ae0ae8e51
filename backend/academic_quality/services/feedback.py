"""
Feedback Submission Service - the anonymous rating flow.

A FeedbackForm walks through these stages:
    SELECTING_COURSE -> RATING -> REVIEWING -> SUBMITTED (terminal)

Validation runs once, atomically, at submit time. The overall rating is
always derived here from the five sub-ratings; a value supplied by the
caller is never trusted. A submitted row carries no identity: only the
course link, the ratings, an optional comment, a random anonymity token
and the course's semester/academic year as they were at submission.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from academic_quality.config import RATING_CATEGORIES
from academic_quality.errors import FieldValidationError, NotFoundError
from academic_quality.logging_config import get_logger, log_with_context
from academic_quality.models.student_feedback import StudentFeedback
from academic_quality.services import entity_store
from academic_quality.services.aggregation import overall_rating, rating_band
from academic_quality.services.validation import feedback_errors, raise_if_errors

logger = get_logger("feedback")

RATING_FIELDS = [field for field, _label in RATING_CATEGORIES]


class FormStage(str, enum.Enum):
    SELECTING_COURSE = "selecting_course"
    RATING = "rating"
    REVIEWING = "reviewing"
    SUBMITTED = "submitted"


def generate_anonymity_token() -> str:
    """Random, non-reversible token; never derived from anything about the submitter."""
    return str(uuid.uuid4())


class FeedbackForm:
    """State of one anonymous feedback submission."""

    def __init__(self, course_id: Optional[str] = None):
        self.reset()
        if course_id:
            self.select_course(course_id)

    def reset(self):
        """Start over: clear the course selection, every rating and the comment."""
        self.course_id: Optional[str] = None
        self.ratings = {field: 0 for field in RATING_FIELDS}
        self.comments = ""
        self.errors = {}
        self.submitted_feedback: Optional[StudentFeedback] = None
        self.stage = FormStage.SELECTING_COURSE

    def _ensure_open(self):
        if self.stage == FormStage.SUBMITTED:
            raise RuntimeError("Feedback already submitted; reset the form to start again")

    def select_course(self, course_id: str):
        self._ensure_open()
        self.course_id = course_id
        self.errors.pop("course_id", None)
        self._advance()

    def set_rating(self, field: str, value: int):
        """Set one category rating (1-5); 0 clears it."""
        self._ensure_open()
        if field not in self.ratings:
            raise KeyError(field)
        self.ratings[field] = value
        self.errors.pop(field, None)
        self._advance()

    def set_comments(self, comments: Optional[str]):
        self._ensure_open()
        self.comments = comments or ""
        self.errors.pop("comments", None)

    def _advance(self):
        if not self.course_id:
            self.stage = FormStage.SELECTING_COURSE
        elif all(self.ratings.values()):
            self.stage = FormStage.REVIEWING
        else:
            self.stage = FormStage.RATING

    @property
    def overall_rating(self) -> int:
        """Rounded mean of the ratings set so far (0 when none are set)."""
        return overall_rating(self.ratings.values())

    @property
    def overall_band(self) -> Optional[str]:
        overall = self.overall_rating
        return rating_band(overall) if overall else None

    def validate(self) -> dict:
        """Check every field at once; returns the field -> message map."""
        self.errors = feedback_errors(self.course_id, self.ratings, self.comments)
        return self.errors

    def submit(self, db: Session) -> StudentFeedback:
        """
        Validate and insert one feedback row.

        Raises FieldValidationError when any field is invalid and StoreError
        when the insert fails; in both cases the form keeps its values so
        the caller can correct or retry.
        """
        self._ensure_open()
        raise_if_errors(self.validate())

        try:
            course = entity_store.get_course(db, self.course_id)
        except NotFoundError:
            self.errors = {"course_id": "Please select a course"}
            raise FieldValidationError(self.errors)

        feedback = StudentFeedback(
            course_id=course.id,
            overall_rating=self.overall_rating,
            comments=self.comments or None,
            anonymous_token=generate_anonymity_token(),
            semester=course.semester_label,
            academic_year=course.academic_year,
            submitted_at=datetime.now(timezone.utc),
            **self.ratings,
        )
        feedback = entity_store.create_feedback(db, feedback)

        self.submitted_feedback = feedback
        self.stage = FormStage.SUBMITTED

        # No request metadata and no token: nothing here can point back to a submitter
        log_with_context(logger, "INFO", "Feedback recorded",
                         context={"course_id": course.id},
                         extra_data={"overall_rating": feedback.overall_rating,
                                     "semester": feedback.semester})
        return feedback


def submit_feedback(db: Session, course_id: Optional[str], ratings: dict,
                    comments: Optional[str] = None) -> StudentFeedback:
    """Fill a fresh form from a payload and submit it."""
    form = FeedbackForm(course_id)
    for field in RATING_FIELDS:
        form.set_rating(field, ratings.get(field) or 0)
    form.set_comments(comments)
    return form.submit(db)

"""
Quality Metrics Service - the batch refresh of the quality_metrics table.

Runs outside the interactive flow (see refresh_metrics.py). Feedback on
every course that has an assigned faculty member is grouped by
(faculty, course, semester, academic year); each group's category
averages, overall score and response count are upserted.
"""

import time
from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from academic_quality.logging_config import get_logger, log_with_context
from academic_quality.models.course import Course
from academic_quality.models.quality_metric import QualityMetric
from academic_quality.models.student_feedback import StudentFeedback
from academic_quality.services.aggregation import average_overall, category_averages
from academic_quality.services.entity_store import commit_or_raise

logger = get_logger("aggregation")

# Chart label -> quality_metrics column
SCORE_COLUMNS = {
    "Teaching Quality": "teaching_score",
    "Course Content": "content_score",
    "Communication": "communication_score",
    "Punctuality": "punctuality_score",
    "Availability": "availability_score",
}


def refresh_quality_metrics(db: Session) -> dict:
    """
    Recompute every quality metric from stored feedback.

    Returns counts of created and updated metric rows.
    """
    start_time = time.time()

    rows = (db.query(StudentFeedback, Course.faculty_id)
            .join(Course, StudentFeedback.course_id == Course.id)
            .filter(Course.faculty_id.isnot(None))
            .all())

    groups = defaultdict(list)
    for feedback, faculty_id in rows:
        groups[(faculty_id, feedback.course_id, feedback.semester, feedback.academic_year)].append(feedback)

    existing = {
        (m.faculty_id, m.course_id, m.semester, m.academic_year): m
        for m in db.query(QualityMetric).all()
    }

    now = datetime.now(timezone.utc)
    created = 0
    updated = 0
    for key, group in groups.items():
        metric = existing.get(key)
        if metric is None:
            faculty_id, course_id, semester, academic_year = key
            metric = QualityMetric(faculty_id=faculty_id, course_id=course_id,
                                   semester=semester, academic_year=academic_year)
            db.add(metric)
            created += 1
        else:
            updated += 1

        for average in category_averages(group):
            setattr(metric, SCORE_COLUMNS[average["name"]], average["value"])
        metric.overall_score = average_overall(group)
        metric.total_responses = len(group)
        metric.calculated_at = now

    commit_or_raise(db, "refresh", "quality metrics")

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Quality metrics refreshed: {} created, {} updated from {} feedback rows".format(
            created, updated, len(rows)),
        extra_data={"duration_ms": round(duration_ms, 2), "groups": len(groups)})

    return {"created": created, "updated": updated, "feedback_rows": len(rows)}

"""
Quality Metrics Refresh - recomputes the quality_metrics table from feedback.

Run it whenever the stored aggregates should catch up with new feedback:

Usage:
    python refresh_metrics.py
    DATABASE_URL=postgresql://user:pass@db/quality python refresh_metrics.py
"""

import sys

from academic_quality.database import SessionLocal
from academic_quality.errors import StoreError
from academic_quality.logging_config import setup_logging
from academic_quality.services.metrics import refresh_quality_metrics


def main():
    setup_logging()

    db = SessionLocal()
    try:
        summary = refresh_quality_metrics(db)
    except StoreError as e:
        print(f"Refresh failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()

    print("=" * 60)
    print("QUALITY METRICS REFRESH")
    print("=" * 60)
    print(f"  Feedback rows read:  {summary['feedback_rows']}")
    print(f"  Metrics created:     {summary['created']}")
    print(f"  Metrics updated:     {summary['updated']}")
    print("=" * 60)


if __name__ == "__main__":
    main()

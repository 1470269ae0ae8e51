"""
Tests for the quality metrics refresh batch
"""
from academic_quality.models.quality_metric import QualityMetric
from academic_quality.services import entity_store
from academic_quality.services.feedback import submit_feedback
from academic_quality.services.metrics import refresh_quality_metrics


class TestRefreshQualityMetrics:
    """Test recomputing quality_metrics from feedback"""

    def test_no_feedback(self, db_session):
        assert refresh_quality_metrics(db_session) == {'created': 0, 'updated': 0, 'feedback_rows': 0}

    def test_groups_feedback_of_assigned_courses(self, db_session, course, assigned_course,
                                                 faculty_profile, make_ratings):
        submit_feedback(db_session, assigned_course.id, make_ratings(5, 4, 5, 4, 5))
        submit_feedback(db_session, assigned_course.id, make_ratings(3, 4, 3, 4, 3))
        # Course with no faculty is not attributed to anyone
        submit_feedback(db_session, course.id, make_ratings())

        summary = refresh_quality_metrics(db_session)

        assert summary == {'created': 1, 'updated': 0, 'feedback_rows': 2}
        metric = db_session.query(QualityMetric).one()
        assert metric.faculty_id == faculty_profile.id
        assert metric.course_id == assigned_course.id
        assert metric.semester == 'Semester 5'
        assert metric.academic_year == '2024-25'
        assert metric.teaching_score == 4.0
        assert metric.content_score == 4.0
        assert metric.overall_score == 4.0
        assert metric.total_responses == 2

    def test_second_refresh_updates_in_place(self, db_session, assigned_course, make_ratings):
        submit_feedback(db_session, assigned_course.id, make_ratings())
        refresh_quality_metrics(db_session)

        submit_feedback(db_session, assigned_course.id, make_ratings(1, 1, 1, 1, 1))
        summary = refresh_quality_metrics(db_session)

        assert summary == {'created': 0, 'updated': 1, 'feedback_rows': 2}
        metric = db_session.query(QualityMetric).one()
        assert metric.total_responses == 2
        assert metric.overall_score == 3.0

    def test_listing_filters(self, db_session, assigned_course, faculty_profile, make_ratings):
        submit_feedback(db_session, assigned_course.id, make_ratings())
        refresh_quality_metrics(db_session)

        assert len(entity_store.list_quality_metrics(db_session, faculty_id=faculty_profile.id)) == 1
        assert entity_store.list_quality_metrics(db_session, semester='Semester 1') == []
        assert len(entity_store.list_quality_metrics(db_session, academic_year='2024-25')) == 1

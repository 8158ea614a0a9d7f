"""Tests for the SQLAlchemy grading store: keyed upserts and roster lookups."""

from conftest import TERM, score
from models.assessments import Assessment as AssessmentModel
from schemas.report_cards import ReportCardUpsert
from services.grading.ingestion import normalize_records


class TestUpsertAssessments:
    def test_repeated_key_in_one_batch_keeps_last_record(self, db, store, school):
        student_id, subject_id = school["student_ids"][0], school["subject_ids"][0]
        records = normalize_records([
            {"student_id": student_id, "subject_id": subject_id, "assessment_type": "qa1", "score": 60},
            {"student_id": student_id, "subject_id": subject_id, "assessment_type": "QA1", "score": 70},
        ], term=TERM)

        assert store.upsert_assessments(records) == 1

        rows = db.query(AssessmentModel).filter(AssessmentModel.student_id == student_id).all()
        assert [(r.assessment_type, r.score) for r in rows] == [("qa1", 70)]

    def test_second_upsert_updates_in_place(self, db, store, school):
        student_id, subject_id = school["student_ids"][0], school["subject_ids"][0]
        store.upsert_assessments([score(student_id, subject_id, "qa2", 40)])
        store.upsert_assessments([score(student_id, subject_id, "qa2", absent=True)])

        [row] = db.query(AssessmentModel).filter(AssessmentModel.student_id == student_id).all()
        assert row.score is None
        assert row.is_absent is True


def test_fetch_student_class(store, school):
    assert store.fetch_student_class(school["student_ids"][2]) == school["class_id"]
    assert store.fetch_student_class(9999) is None


def test_report_card_class_comes_from_roster(store, school):
    student_id = school["student_ids"][1]
    card = store.upsert_report_card(ReportCardUpsert(student_id=student_id, term=TERM, days_present=40))
    assert card.class_id == school["class_id"]
    assert card.days_present == 40
    assert card.class_rank is None

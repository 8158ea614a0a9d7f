"""Tests for normalizing external assessment records."""

import pytest

from schemas.assessments import AssessmentType
from services.grading.errors import InvalidAssessmentRecord, OutOfRangeScore, UnknownAssessmentType
from services.grading.ingestion import group_components, normalize_record, normalize_records, parse_assessment_type


class TestParseAssessmentType:
    @pytest.mark.parametrize("raw, expected", [
        ("qa1", AssessmentType.QA1),
        ("QA1", AssessmentType.QA1),
        ("qa2", AssessmentType.QA2),
        ("end_of_term", AssessmentType.END_OF_TERM),
        ("endOfTerm", AssessmentType.END_OF_TERM),
        ("EndOfTerm", AssessmentType.END_OF_TERM),
        ("End Term", AssessmentType.END_OF_TERM),
        ("eot", AssessmentType.END_OF_TERM),
    ])
    def test_spellings(self, raw, expected):
        assert parse_assessment_type(raw) == expected

    @pytest.mark.parametrize("raw", ["qa3", "midterm", "", None])
    def test_unknown(self, raw):
        with pytest.raises(UnknownAssessmentType):
            parse_assessment_type(raw)


class TestNormalizeRecord:
    def test_snake_case_record(self):
        record = normalize_record(
            {"student_id": 1, "subject_id": 2, "assessment_type": "qa1", "score": 77, "is_absent": False},
            term="Term 1",
        )
        assert (record.student_id, record.subject_id, record.score, record.term) == (1, 2, 77, "Term 1")
        assert record.assessment_type == AssessmentType.QA1

    def test_camel_case_and_nested_ids(self):
        record = normalize_record({
            "studentId": "4",
            "subject": {"id": 9, "name": "Mathematics"},
            "assessmentType": "endOfTerm",
            "score": "64.5",
            "isAbsent": "false",
        })
        assert (record.student_id, record.subject_id) == (4, 9)
        assert record.assessment_type == AssessmentType.END_OF_TERM
        assert record.score == 64.5
        assert record.is_absent is False

    def test_blank_score_is_none(self):
        record = normalize_record({"student_id": 1, "subject_id": 2, "type": "qa2", "score": "", "absent": "yes"})
        assert record.score is None
        assert record.is_absent is True

    def test_out_of_range_score_is_clamped(self):
        record = normalize_record({"student_id": 1, "subject_id": 2, "assessment_type": "qa1", "score": 105})
        assert record.score == 100

    def test_non_finite_score_is_rejected(self):
        with pytest.raises(OutOfRangeScore):
            normalize_record({"student_id": 1, "subject_id": 2, "assessment_type": "qa1", "score": "inf"})

    def test_non_numeric_score_is_rejected(self):
        with pytest.raises(InvalidAssessmentRecord):
            normalize_record({"student_id": 1, "subject_id": 2, "assessment_type": "qa1", "score": "abc"})

    def test_missing_subject(self):
        with pytest.raises(InvalidAssessmentRecord):
            normalize_record({"student_id": 1, "assessment_type": "qa1", "score": 50})

    def test_record_term_wins_over_default(self):
        records = normalize_records([
            {"student_id": 1, "subject_id": 2, "assessment_type": "qa1", "term": "Term 2"},
            {"student_id": 1, "subject_id": 2, "assessment_type": "qa2"},
        ], term="Term 1")
        assert [r.term for r in records] == ["Term 2", "Term 1"]


def test_group_components_fills_missing_components():
    records = normalize_records([
        {"student_id": 1, "subject_id": 2, "assessment_type": "qa1", "score": 60},
        {"student_id": 1, "subject_id": 2, "assessment_type": "end_of_term", "is_absent": True},
        {"student_id": 1, "subject_id": 3, "assessment_type": "qa2", "score": 45},
    ])
    grouped = group_components(records)

    assert set(grouped[1]) == {2, 3}
    maths = grouped[1][2]
    assert maths.qa1.score == 60
    assert maths.qa2.score is None and not maths.qa2.is_absent
    assert maths.end_of_term.is_absent
    assert grouped[1][3].qa2.score == 45

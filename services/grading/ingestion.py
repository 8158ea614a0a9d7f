"""
services/grading/ingestion.py

외부(화면, CSV, 레거시 API)에서 들어오는 평가 레코드를 표준 AssessmentScore 로 정규화합니다.
- subject_id / subjectId / subject.id 처럼 제각각인 필드명은 여기서만 처리
- 엔진(resolver, ranking)은 정규화된 AssessmentScore 만 받는다
"""

import logging
import math
import re
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from schemas.assessments import AssessmentScore, AssessmentType, ComponentScore, SubjectComponents
from services.grading.errors import InvalidAssessmentRecord, OutOfRangeScore, UnknownAssessmentType
from services.grading.resolver import clamp_score

logger = logging.getLogger(__name__)

# 공백/기호 제거 + 소문자 기준
_TYPE_ALIASES = {
    "qa1": AssessmentType.QA1,
    "quarterlyassessment1": AssessmentType.QA1,
    "qa2": AssessmentType.QA2,
    "quarterlyassessment2": AssessmentType.QA2,
    "endofterm": AssessmentType.END_OF_TERM,
    "endterm": AssessmentType.END_OF_TERM,
    "eot": AssessmentType.END_OF_TERM,
}

_STUDENT_KEYS = ("student_id", "studentId", "student")
_SUBJECT_KEYS = ("subject_id", "subjectId", "subject")
_TYPE_KEYS = ("assessment_type", "assessmentType", "type")
_ABSENT_KEYS = ("is_absent", "isAbsent", "absent")
_TRUE_STRINGS = {"1", "true", "yes", "y", "t"}


def parse_assessment_type(value: Any) -> AssessmentType:
    if isinstance(value, AssessmentType):
        return value
    key = re.sub(r"[^a-z0-9]", "", str(value or "").lower())
    try:
        return _TYPE_ALIASES[key]
    except KeyError:
        raise UnknownAssessmentType(f"unknown assessment type: {value!r}") from None


def _first(record: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _parse_id(record: Mapping[str, Any], keys: Tuple[str, ...], label: str) -> int:
    value = _first(record, keys)
    # { "subject": { "id": 3, "name": ... } } 형태
    if isinstance(value, Mapping):
        value = value.get("id")
    if value is None or value == "":
        raise InvalidAssessmentRecord(f"{label} is missing")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidAssessmentRecord(f"{label} must be an integer, got {value!r}") from None


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _parse_score(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        raise InvalidAssessmentRecord(f"score must be numeric, got {value!r}") from None
    if math.isnan(score) or math.isinf(score):
        raise OutOfRangeScore(f"score must be a finite number, got {value!r}")
    return clamp_score(score)


def normalize_record(record: Mapping[str, Any], term: Optional[str] = None) -> AssessmentScore:
    """외부 레코드 하나 → AssessmentScore"""
    if isinstance(record, AssessmentScore):
        return record if record.term or term is None else record.model_copy(update={"term": term})

    return AssessmentScore(
        student_id=_parse_id(record, _STUDENT_KEYS, "student_id"),
        subject_id=_parse_id(record, _SUBJECT_KEYS, "subject_id"),
        assessment_type=parse_assessment_type(_first(record, _TYPE_KEYS)),
        score=_parse_score(record.get("score")),
        is_absent=_parse_bool(_first(record, _ABSENT_KEYS)),
        term=record.get("term") or term,
    )


def normalize_records(records: Iterable[Mapping[str, Any]], term: Optional[str] = None) -> List[AssessmentScore]:
    normalized = [normalize_record(r, term=term) for r in records]
    logger.debug(f"normalized {len(normalized)} assessment records (term={term})")
    return normalized


def group_components(records: Iterable[AssessmentScore]) -> Dict[int, Dict[int, SubjectComponents]]:
    """
    평가 행 목록 → {student_id: {subject_id: SubjectComponents}}
    - 행이 없는 평가는 score=None, is_absent=False
    """
    grouped: Dict[int, Dict[int, Dict[str, ComponentScore]]] = defaultdict(dict)
    for record in records:
        parts = grouped[record.student_id].setdefault(record.subject_id, {})
        parts[record.assessment_type.value] = ComponentScore(score=record.score, is_absent=record.is_absent)

    return {
        student_id: {subject_id: SubjectComponents(**parts) for subject_id, parts in subjects.items()}
        for student_id, subjects in grouped.items()
    }

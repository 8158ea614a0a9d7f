"""
services/grading/workflow.py

성적 입력 저장 흐름
  정규화 → 평가 점수 upsert → (선택) 출결/의견 저장 → 과목별 등급 계산
  → 반 석차 전체 재계산 → 정책 자동 전환 판단
- 석차를 다시 계산할 반은 명단(students.class_id)에서 정함
- 어느 단계든 실패하면 예외를 그대로 올림 (조용한 재시도 없음)
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from schemas.assessments import AssessmentScore
from schemas.report_cards import ReportCardUpsert
from schemas.results import RankEntry, SubmissionResult
from services.grading.errors import InvalidAssessmentRecord
from services.grading.ingestion import group_components, normalize_record, normalize_records
from services.grading.resolver import resolve

logger = logging.getLogger(__name__)


def student_class(store, student_id: int, class_id: Optional[int] = None) -> int:
    """명단상의 반 ID. 요청에 준 반이 명단과 다르면 거부"""
    registered = store.fetch_student_class(student_id)
    if registered is None:
        raise InvalidAssessmentRecord(f"student {student_id} is not registered to a class")
    if class_id is not None and class_id != registered:
        raise InvalidAssessmentRecord(
            f"student {student_id} belongs to class {registered}, not class {class_id}"
        )
    return registered


def submit_student_results(
    store,
    engine,
    switcher,
    student_id: int,
    term: str,
    records: Iterable[Mapping[str, Any]],
    class_id: Optional[int] = None,
    report_card: Optional[ReportCardUpsert] = None,
) -> SubmissionResult:
    normalized = normalize_records(records, term=term)
    # 요청 경로의 학생과 다른 레코드는 받지 않음
    foreign = sorted({r.student_id for r in normalized if r.student_id != student_id})
    if foreign:
        raise InvalidAssessmentRecord(f"records for other students in submission: {foreign}")
    class_id = student_class(store, student_id, class_id)

    store.upsert_assessments(normalized)
    if report_card is not None:
        store.upsert_report_card(report_card)

    policy = store.get_active_policy()
    components = group_components(store.fetch_assessments(student_id, term)).get(student_id, {})
    subjects = [
        resolve(parts, policy, student_id=student_id, subject_id=subject_id)
        for subject_id, parts in sorted(components.items())
    ]

    ranks = engine.recompute(class_id, term)
    decision = switcher.evaluate(normalized)
    logger.info(
        f"saved {len(normalized)} assessment(s) for student_id={student_id} term={term!r}; "
        f"auto_switch={decision.switched}"
    )

    return SubmissionResult(
        student_id=student_id,
        class_id=class_id,
        term=term,
        subjects=subjects,
        ranks=ranks,
        auto_switch=decision,
    )


def save_assessment(store, engine, record: Mapping[str, Any], term: Optional[str] = None
                    ) -> Tuple[AssessmentScore, List[RankEntry]]:
    """평가 점수 한 건 저장 후 그 학생 반의 석차 재계산 (자동 전환 판단은 하지 않음)"""
    normalized = normalize_record(record, term=term)
    if normalized.term is None:
        raise InvalidAssessmentRecord("assessment term is required for persistence")
    class_id = student_class(store, normalized.student_id)

    store.upsert_assessment(normalized)
    ranks = engine.recompute(class_id, normalized.term)
    return normalized, ranks

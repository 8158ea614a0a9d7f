"""
services/grading/report.py

학생 한 명의 학기 성적표 데이터 구성 (과목별 점수/등급 + 평가 종류별 통계 + 석차 + 출결)
- 석차는 ClassRankEngine 이 기록한 값을 읽기만 함
"""

from typing import Dict, List, Optional

from schemas.assessments import SubjectComponents
from schemas.grading_policies import GradingPolicy
from schemas.results import AssessmentStat, Attendance, StudentReport, SubjectReportRow
from services.grading.ingestion import group_components
from services.grading.resolver import available_scores, letter_grade, resolve


def _mean(values: List[float]) -> Optional[float]:
    return round(sum(values) / len(values), 2) if values else None


def subject_rows(components: Dict[int, SubjectComponents], policy: GradingPolicy,
                 subject_names: Dict[int, str]) -> List[SubjectReportRow]:
    rows = []
    for subject_id in sorted(components):
        parts = components[subject_id]
        result = resolve(parts, policy, subject_id=subject_id)
        rows.append(SubjectReportRow(
            subject_id=subject_id,
            subject_name=subject_names.get(subject_id),
            qa1=parts.qa1.score,
            qa2=parts.qa2.score,
            end_of_term=parts.end_of_term.score,
            qa1_absent=parts.qa1.is_absent,
            qa2_absent=parts.qa2.is_absent,
            end_of_term_absent=parts.end_of_term.is_absent,
            final_score=round(result.final_score, 2) if result.final_score is not None else None,
            grade=result.letter_grade,
        ))
    return rows


def assessment_stats(components: Dict[int, SubjectComponents], rows: List[SubjectReportRow],
                     policy: GradingPolicy, card=None) -> Dict[str, AssessmentStat]:
    """평가 종류별 학기 평균과 그 평균의 등급, 석차"""
    per_type: Dict[str, List[float]] = {"qa1": [], "qa2": [], "end_of_term": []}
    for parts in components.values():
        for name, score in available_scores(parts).items():
            per_type[name].append(score)

    ranks = {
        "qa1": getattr(card, "qa1_rank", None),
        "qa2": getattr(card, "qa2_rank", None),
        "end_of_term": None,
        "overall": getattr(card, "class_rank", None),
    }

    stats = {}
    for name, scores in per_type.items():
        average = _mean(scores)
        stats[name] = AssessmentStat(
            term_average=average,
            overall_grade=letter_grade(average, policy.pass_mark),
            class_rank=ranks[name],
        )

    overall = _mean([r.final_score for r in rows if r.final_score is not None])
    stats["overall"] = AssessmentStat(
        term_average=overall,
        overall_grade=letter_grade(overall, policy.pass_mark),
        class_rank=ranks["overall"],
    )
    return stats


def build_student_report(store, student_id: int, term: str,
                         subject_names: Optional[Dict[int, str]] = None) -> StudentReport:
    policy = store.get_active_policy()
    records = store.fetch_assessments(student_id, term)
    components = group_components(records).get(student_id, {})
    card = store.get_report_card(student_id, term)

    rows = subject_rows(components, policy, subject_names or {})
    stats = assessment_stats(components, rows, policy, card)

    return StudentReport(
        student_id=student_id,
        term=term,
        class_id=getattr(card, "class_id", None),
        class_rank=getattr(card, "class_rank", None),
        total_students=getattr(card, "total_students", None),
        attendance=Attendance(
            present=getattr(card, "days_present", None),
            absent=getattr(card, "days_absent", None),
            late=getattr(card, "days_late", None),
        ),
        teacher_remarks=getattr(card, "teacher_remarks", None),
        subjects=rows,
        assessment_stats=stats,
        overall_term_average=stats["overall"].term_average,
        calculation_method=policy.method.value,
        grading_policy=policy,
    )

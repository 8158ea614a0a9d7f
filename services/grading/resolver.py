"""
services/grading/resolver.py

과목 하나의 QA1 / QA2 / 기말 점수(+결시 여부)와 성적 정책으로 최종 점수와 등급을 계산합니다.
- 순수 함수: DB/전역 상태를 건드리지 않으므로 실시간 미리보기와 일괄 계산에 모두 사용
- 결시하거나 점수가 없는 평가는 0점으로 치지 않고 계산에서 빠짐
"""

import logging
import math
from typing import Dict, Optional

from schemas.assessments import ComponentScore, SubjectComponents
from schemas.grading_policies import GradingMethod, GradingPolicy
from schemas.results import SubjectResult
from services.grading.errors import OutOfRangeScore

logger = logging.getLogger(__name__)

SCORE_MIN = 0.0
SCORE_MAX = 100.0

NOT_AVAILABLE = "N/A"
ABSENT = "AB"


def clamp_score(score: Optional[float]) -> Optional[float]:
    """점수를 [0, 100]으로 보정. NaN/무한대는 보정할 수 없으므로 예외"""
    if score is None:
        return None
    value = float(score)
    if math.isnan(value) or math.isinf(value):
        raise OutOfRangeScore(f"score must be a finite number, got {score!r}")
    if value < SCORE_MIN or value > SCORE_MAX:
        logger.warning(f"score {value} out of range, clamped to [{SCORE_MIN:g}, {SCORE_MAX:g}]")
        return min(max(value, SCORE_MIN), SCORE_MAX)
    return value


def is_available(component: ComponentScore) -> bool:
    return not component.is_absent and component.score is not None


def available_scores(components: SubjectComponents) -> Dict[str, float]:
    """결시/미입력을 뺀 {평가종류: 보정된 점수}"""
    result = {}
    for name in ("qa1", "qa2", "end_of_term"):
        component = getattr(components, name)
        if is_available(component):
            result[name] = clamp_score(component.score)
    return result


def _weights(policy: GradingPolicy) -> Dict[str, float]:
    return {
        "qa1": policy.weight_qa1,
        "qa2": policy.weight_qa2,
        "end_of_term": policy.weight_end_of_term,
    }


def final_score(components: SubjectComponents, policy: GradingPolicy) -> Optional[float]:
    scores = available_scores(components)

    if policy.method == GradingMethod.END_OF_TERM_ONLY:
        return scores.get("end_of_term")

    if policy.method == GradingMethod.AVERAGE_ALL:
        if not scores:
            return None
        return sum(scores.values()) / len(scores)

    if policy.method == GradingMethod.WEIGHTED_AVERAGE:
        # 있는 평가의 가중치만 합산해 비율 그대로 재정규화
        weights = _weights(policy)
        available_weight = sum(weights[name] for name in scores)
        if available_weight == 0:
            return None
        weighted_sum = sum(scores[name] * weights[name] for name in scores)
        return weighted_sum / available_weight

    raise ValueError(f"unsupported grading method: {policy.method!r}")


def letter_grade(score: Optional[float], pass_mark: float) -> str:
    if score is None:
        return NOT_AVAILABLE
    if score >= 80:
        return "A"
    if score >= 70:
        return "B"
    if score >= 60:
        return "C"
    if score >= pass_mark:
        return "D"
    return "F"


def all_absent(components: SubjectComponents) -> bool:
    return components.qa1.is_absent and components.qa2.is_absent and components.end_of_term.is_absent


def resolve(
    components: SubjectComponents,
    policy: GradingPolicy,
    student_id: Optional[int] = None,
    subject_id: Optional[int] = None,
) -> SubjectResult:
    """
    과목 하나의 최종 점수/등급 계산
    - 모든 평가를 결시한 경우 F가 아니라 "AB" (시험을 치르지 않음)
    - 산출 가능한 점수가 없으면 "N/A"
    """
    if all_absent(components):
        return SubjectResult(student_id=student_id, subject_id=subject_id, final_score=None, letter_grade=ABSENT)

    score = final_score(components, policy)
    return SubjectResult(
        student_id=student_id,
        subject_id=subject_id,
        final_score=score,
        letter_grade=letter_grade(score, policy.pass_mark),
    )

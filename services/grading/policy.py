"""
services/grading/policy.py

성적 정책 검증과 생명주기 규칙 (draft → active → archived)
"""

import math

from schemas.grading_policies import GradingMethod, GradingPolicyDraft, LifecycleState
from services.grading.errors import InvalidPolicyTransition, InvalidWeightConfiguration

WEIGHT_TOTAL = 100

# 활성 → 보관은 다른 정책을 활성화할 때만 일어남
_ALLOWED_TRANSITIONS = {
    (LifecycleState.DRAFT, LifecycleState.ACTIVE),
    (LifecycleState.ARCHIVED, LifecycleState.ACTIVE),
    (LifecycleState.ACTIVE, LifecycleState.ARCHIVED),
}


def validate_policy_draft(draft: GradingPolicyDraft) -> GradingPolicyDraft:
    """
    정책 생성/수정 시점 검증 (점수 계산 시점에는 검증하지 않음)
    - 음수 가중치 거부
    - 가중 평균이면 세 가중치 합이 정확히 100
    """
    weights = {
        "weight_qa1": draft.weight_qa1,
        "weight_qa2": draft.weight_qa2,
        "weight_end_of_term": draft.weight_end_of_term,
    }
    negative = [name for name, value in weights.items() if value < 0]
    if negative:
        raise InvalidWeightConfiguration(f"weights must not be negative: {', '.join(negative)}")

    if draft.method == GradingMethod.WEIGHTED_AVERAGE:
        total = sum(weights.values())
        # 33.3 + 33.3 + 33.4 같은 소수 입력의 부동소수 오차만 허용
        if not math.isclose(total, WEIGHT_TOTAL, rel_tol=0, abs_tol=1e-9):
            raise InvalidWeightConfiguration(
                f"weighted_average weights must sum to {WEIGHT_TOTAL}, got {total:g}"
            )
    return draft


def check_transition(current: LifecycleState, target: LifecycleState) -> None:
    if (LifecycleState(current), LifecycleState(target)) not in _ALLOWED_TRANSITIONS:
        raise InvalidPolicyTransition(f"cannot move policy from {current} to {target}")


def check_editable(state: LifecycleState) -> None:
    # 활성/보관 정책은 불변. 바꾸려면 새 초안을 만든다
    if LifecycleState(state) != LifecycleState.DRAFT:
        raise InvalidPolicyTransition(f"only draft policies can be edited (policy is {LifecycleState(state).value})")


def default_policy_draft(name: str, pass_mark: float) -> GradingPolicyDraft:
    return GradingPolicyDraft(
        name=name,
        method=GradingMethod.WEIGHTED_AVERAGE,
        weight_qa1=30,
        weight_qa2=30,
        weight_end_of_term=40,
        pass_mark=pass_mark,
    )


def end_of_term_only_draft(name: str, pass_mark: float) -> GradingPolicyDraft:
    return GradingPolicyDraft(
        name=name,
        method=GradingMethod.END_OF_TERM_ONLY,
        weight_qa1=0,
        weight_qa2=0,
        weight_end_of_term=100,
        pass_mark=pass_mark,
    )

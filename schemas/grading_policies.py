from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GradingMethod(str, Enum):
    AVERAGE_ALL = "average_all"              # 입력된 평가 점수의 단순 평균
    END_OF_TERM_ONLY = "end_of_term_only"    # 기말 점수만 사용
    WEIGHTED_AVERAGE = "weighted_average"    # 가중 평균 (가중치 합 100)


class LifecycleState(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


# ✅ 입력용 (생성/수정)
#   - 가중치 음수/합계 검증은 services.grading.policy.validate_policy_draft 에서 수행
class GradingPolicyDraft(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    method: GradingMethod
    weight_qa1: float = 0
    weight_qa2: float = 0
    weight_end_of_term: float = 0
    pass_mark: float = Field(50, ge=0, le=100)


# ✅ 출력/엔진용 스냅샷 (불변)
class GradingPolicy(GradingPolicyDraft):
    id: int
    lifecycle_state: LifecycleState = LifecycleState.DRAFT
    created_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class PolicyActivateRequest(BaseModel):
    # 알고 있는 활성화 버전 (동시 활성화 충돌 감지용, 생략 가능)
    expected_version: Optional[int] = None

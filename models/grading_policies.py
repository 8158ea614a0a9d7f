from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey
from database.db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class GradingPolicy(Base):
    __tablename__ = "grading_policies"  # 성적 산출 정책 테이블

    id = Column(Integer, primary_key=True, index=True)             # 정책 고유 ID
    name = Column(String(100), nullable=False)                     # 정책 이름
    method = Column(String(30), nullable=False)                    # average_all / end_of_term_only / weighted_average
    weight_qa1 = Column(Float, nullable=False, default=0)          # QA1 가중치 (%)
    weight_qa2 = Column(Float, nullable=False, default=0)          # QA2 가중치 (%)
    weight_end_of_term = Column(Float, nullable=False, default=0)  # 기말 가중치 (%)
    pass_mark = Column(Float, nullable=False, default=50)          # 합격 기준 점수 (D 등급 하한)
    lifecycle_state = Column(String(20), nullable=False, default="draft")  # draft / active / archived
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    activated_at = Column(DateTime(timezone=True), nullable=True)


class PolicyActivation(Base):
    """
    학교 전체의 활성 정책 포인터 (항상 id=1 한 행)
    - version은 활성화할 때마다 1씩 증가 → compare-and-swap 조건으로 사용
    """
    __tablename__ = "policy_activation"

    id = Column(Integer, primary_key=True)
    active_policy_id = Column(Integer, ForeignKey("grading_policies.id"), nullable=True)
    version = Column(Integer, nullable=False, default=0)

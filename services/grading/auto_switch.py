"""
services/grading/auto_switch.py

성적 저장 직후 실행하는 정책 자동 전환 단계
- 한 학생의 제출분에 QA1/QA2 점수는 있는데 모든 과목의 기말 점수가 결시/미입력이면
  "기말만 반영(end_of_term_only)" 정책을 찾아(없으면 만들어) 학교 전체의 활성 정책으로 전환
- 학생 한 명의 입력 형태로 학교 전체 정책이 바뀌므로 POLICY_AUTO_SWITCH_ENABLED 로 끌 수 있음
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from schemas.assessments import AssessmentScore, AssessmentType
from schemas.grading_policies import GradingMethod, GradingPolicy
from schemas.results import AutoSwitchDecision
from services.grading.errors import NoActivePolicy
from services.grading.policy import end_of_term_only_draft

logger = logging.getLogger(__name__)


def _available(record: AssessmentScore) -> bool:
    return not record.is_absent and record.score is not None


def qa_only_submission(records: Iterable[AssessmentScore]) -> bool:
    """QA1/QA2 점수가 하나라도 있고, 모든 과목의 기말 점수가 결시이거나 비어 있는가"""
    by_subject: Dict[int, List[AssessmentScore]] = defaultdict(list)
    for record in records:
        by_subject[record.subject_id].append(record)
    if not by_subject:
        return False

    has_qa_score = any(
        r.assessment_type in (AssessmentType.QA1, AssessmentType.QA2) and _available(r)
        for rows in by_subject.values()
        for r in rows
    )
    end_of_term_missing = all(
        not any(r.assessment_type == AssessmentType.END_OF_TERM and _available(r) for r in rows)
        for rows in by_subject.values()
    )
    return has_qa_score and end_of_term_missing


class PolicyAutoSwitcher:
    def __init__(self, store, enabled: bool = True, policy_name: str = "End of Term Only (Auto)",
                 fallback_pass_mark: float = 50.0):
        self.store = store
        self.enabled = enabled
        self.policy_name = policy_name
        self.fallback_pass_mark = fallback_pass_mark

    def _find_end_of_term_policy(self) -> Optional[GradingPolicy]:
        # 상태와 무관 (보관된 정책, 활성화에 실패해 남은 초안 포함)
        candidates = [p for p in self.store.list_policies() if p.method == GradingMethod.END_OF_TERM_ONLY]
        return candidates[0] if candidates else None

    def evaluate(self, records: Iterable[AssessmentScore]) -> AutoSwitchDecision:
        records = list(records)
        if not self.enabled:
            return AutoSwitchDecision(switched=False, reason="auto-switch disabled")
        if not qa_only_submission(records):
            return AutoSwitchDecision(switched=False, reason="submission includes end-of-term scores")

        version = self.store.activation_version()
        try:
            active = self.store.get_active_policy()
        except NoActivePolicy:
            active = None

        if active is not None and active.method == GradingMethod.END_OF_TERM_ONLY:
            return AutoSwitchDecision(switched=False, policy=active, reason="end_of_term_only already active")

        created = False
        target = self._find_end_of_term_policy()
        if target is None:
            pass_mark = active.pass_mark if active is not None else self.fallback_pass_mark
            target = self.store.create_policy(end_of_term_only_draft(self.policy_name, pass_mark))
            created = True

        # 읽은 뒤 다른 요청이 먼저 활성화했다면 PolicyActivationConflict 로 실패 (재시도하지 않음)
        # 이때 방금 만든 초안은 남지만 다음 판단에서 _find_end_of_term_policy 가 그대로 재사용
        activated = self.store.activate_policy(target.id, expected_version=version)
        student_ids = sorted({r.student_id for r in records})
        logger.warning(
            f"school-wide grading policy switched to id={activated.id} ({activated.name!r}) "
            f"after QA-only submission for student(s) {student_ids}; previous={active.id if active else None}"
        )
        return AutoSwitchDecision(
            switched=True,
            created=created,
            policy=activated,
            reason="QA1/QA2 scores present without end-of-term scores",
        )

"""
services/grading/ranking.py

반(class) + 학기 단위 석차 계산 엔진
- 종합 점수: 학생별 과목 최종 점수(ScoreResolver)의 평균
- QA1 / QA2 석차: 정책과 무관하게 해당 평가 원점수의 평균
- 동점은 같은 석차, 다음 점수는 동점자 수만큼 건너뜀 (1, 2, 2, 4)
- 매번 반 전체를 다시 계산 (부분 갱신 없음)
"""

import logging
import math
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

from schemas.assessments import AssessmentScore, AssessmentType
from schemas.grading_policies import GradingPolicy
from schemas.results import RankEntry
from services.grading.ingestion import group_components
from services.grading.resolver import clamp_score, resolve

logger = logging.getLogger(__name__)

SCORE_TOLERANCE = 1e-9


def competition_ranks(scores: Mapping[Hashable, float]) -> Dict[Hashable, int]:
    """
    {키: 점수} → {키: 석차}, 높은 점수가 1등
    >>> competition_ranks({"a": 90, "b": 80, "c": 80, "d": 70})
    {'a': 1, 'b': 2, 'c': 2, 'd': 4}
    """
    ordered = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    ranks = {}
    previous_score = None
    current_rank = 0
    for position, (key, score) in enumerate(ordered, start=1):
        # 0.1 + 0.2 와 0.3 처럼 부동소수 오차만큼 다른 점수는 같은 점수
        if previous_score is None or not math.isclose(score, previous_score, rel_tol=0, abs_tol=SCORE_TOLERANCE):
            current_rank = position
            previous_score = score
        ranks[key] = current_rank
    return ranks


def _mean(values: Sequence[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def overall_scores(records: Iterable[AssessmentScore], policy: GradingPolicy) -> Dict[int, Optional[float]]:
    """학생별 종합 점수 (산출된 과목 최종 점수의 평균, 없으면 None)"""
    result = {}
    for student_id, subjects in group_components(records).items():
        finals = [resolve(components, policy).final_score for components in subjects.values()]
        result[student_id] = _mean([score for score in finals if score is not None])
    return result


def component_averages(records: Iterable[AssessmentScore], assessment_type: AssessmentType) -> Dict[int, Optional[float]]:
    """학생별 특정 평가(QA1/QA2) 원점수 평균 (결시/미입력 제외)"""
    collected: Dict[int, List[float]] = defaultdict(list)
    seen = set()
    for record in records:
        seen.add(record.student_id)
        if record.assessment_type != assessment_type:
            continue
        if record.is_absent or record.score is None:
            continue
        collected[record.student_id].append(clamp_score(record.score))
    return {student_id: _mean(collected.get(student_id, [])) for student_id in seen}


def _rank_present(scores: Mapping[int, Optional[float]], precision: Optional[int]) -> Dict[int, int]:
    # 점수 없는 학생은 석차에서 제외. precision 을 주면 그 자릿수로 반올림한 점수가 같을 때 동점
    return competition_ranks({
        student_id: score if precision is None else round(score, precision)
        for student_id, score in scores.items()
        if score is not None
    })


def compute_rank_entries(
    class_id: int,
    term: str,
    records: Sequence[AssessmentScore],
    roster: Iterable[int],
    policy: GradingPolicy,
    precision: Optional[int] = None,
) -> List[RankEntry]:
    """
    반 전체 석차 계산 (저장하지 않는 순수 함수)
    - total_students는 재적 인원: 산출 가능한 과목이 없어 석차가 없는 학생도 포함
    - 결과는 student_id 순으로 정렬 (같은 입력이면 항상 같은 결과)
    """
    students = set(roster) | {record.student_id for record in records}
    total_students = len(students)

    class_ranks = _rank_present(overall_scores(records, policy), precision)
    qa1_ranks = _rank_present(component_averages(records, AssessmentType.QA1), precision)
    qa2_ranks = _rank_present(component_averages(records, AssessmentType.QA2), precision)

    return [
        RankEntry(
            student_id=student_id,
            class_id=class_id,
            term=term,
            class_rank=class_ranks.get(student_id),
            qa1_rank=qa1_ranks.get(student_id),
            qa2_rank=qa2_ranks.get(student_id),
            total_students=total_students,
        )
        for student_id in sorted(students)
    ]


class RecomputeLocks:
    """(반, 학기)별 프로세스 내 잠금. 같은 키의 재계산은 한 번에 하나만"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Tuple[int, str], threading.Lock] = {}

    @contextmanager
    def hold(self, class_id: int, term: str):
        with self._guard:
            lock = self._locks.setdefault((class_id, term), threading.Lock())
        with lock:
            yield


# 프로세스 전역 잠금 (요청마다 엔진을 새로 만들어도 공유)
recompute_locks = RecomputeLocks()


class ClassRankEngine:
    """
    store는 아래 메서드를 제공하는 저장소 협력 객체 (services.grading.store.SqlGradingStore 등)
    - get_active_policy(), current_rank_version(class_id, term)
    - fetch_class_assessments(class_id, term), fetch_class_roster(class_id, term)
    - persist_rank_entries(class_id, term, entries, expected_version)
    """

    def __init__(self, store, locks: RecomputeLocks = recompute_locks,
                 precision: Optional[int] = None):
        self.store = store
        self.locks = locks
        self.precision = precision

    def recompute(self, class_id: int, term: str) -> List[RankEntry]:
        with self.locks.hold(class_id, term):
            # 활성 정책이 없으면 NoActivePolicy → 아무것도 저장하지 않고 전파
            policy = self.store.get_active_policy()
            version = self.store.current_rank_version(class_id, term)
            records = self.store.fetch_class_assessments(class_id, term)
            roster = self.store.fetch_class_roster(class_id, term)

            entries = compute_rank_entries(class_id, term, records, roster, policy, self.precision)
            new_version = self.store.persist_rank_entries(class_id, term, entries, expected_version=version)

        logger.info(
            f"recomputed ranks class_id={class_id} term={term!r} students={len(entries)} "
            f"policy={policy.id}:{policy.method.value} version={new_version}"
        )
        return entries

"""
services/grading/store.py

성적 엔진이 사용하는 저장소 협력 객체 (SQLAlchemy 구현)
- 평가 점수 조회/upsert, 반 명단, 성적 정책 CRUD + 활성화, 석차 저장
- 활성화는 policy_activation.version 에 대한 compare-and-swap
- 석차 저장은 rank_versions.version 에 대한 compare-and-swap, 한 트랜잭션으로 전부 기록
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.assessments import Assessment as AssessmentModel
from models.grading_policies import GradingPolicy as GradingPolicyModel
from models.grading_policies import PolicyActivation as PolicyActivationModel
from models.report_cards import RankVersion as RankVersionModel
from models.report_cards import ReportCard as ReportCardModel
from models.students import Student as StudentModel
from schemas.assessments import AssessmentScore
from schemas.grading_policies import GradingPolicy, GradingPolicyDraft, LifecycleState
from schemas.report_cards import ReportCardUpsert
from schemas.results import RankEntry
from services.grading.errors import (
    ConcurrentRecomputeConflict,
    InvalidAssessmentRecord,
    NoActivePolicy,
    PolicyActivationConflict,
    PolicyNotFound,
)
from services.grading.policy import check_editable, check_transition, default_policy_draft, validate_policy_draft

logger = logging.getLogger(__name__)

ACTIVATION_ROW_ID = 1


def _to_score(row: AssessmentModel) -> AssessmentScore:
    return AssessmentScore.model_validate(row)


def _to_policy(row: GradingPolicyModel) -> GradingPolicy:
    return GradingPolicy.model_validate(row)


class SqlGradingStore:
    def __init__(self, db: Session):
        self.db = db

    # ==========================================================
    # [평가 점수]
    # ==========================================================

    def fetch_assessments(self, student_id: int, term: Optional[str] = None) -> List[AssessmentScore]:
        query = self.db.query(AssessmentModel).filter(AssessmentModel.student_id == student_id)
        if term is not None:
            query = query.filter(AssessmentModel.term == term)
        rows = query.order_by(AssessmentModel.subject_id, AssessmentModel.assessment_type).all()
        return [_to_score(r) for r in rows]

    def upsert_assessment(self, record: AssessmentScore) -> None:
        self.upsert_assessments([record])

    def upsert_assessments(self, records: Iterable[AssessmentScore]) -> int:
        """
        (학생, 과목, 평가종류, 학기) 기준 upsert. 전부 한 번에 커밋
        - 한 묶음 안에 같은 키가 여러 번 오면 마지막 레코드만 반영 ("qa1" / "QA1" 중복 등)
        """
        latest: Dict[Tuple[int, int, str, str], AssessmentScore] = {}
        for record in records:
            if record.term is None:
                raise InvalidAssessmentRecord("assessment term is required for persistence")
            key = (record.student_id, record.subject_id, record.assessment_type.value, record.term)
            latest[key] = record

        try:
            for (student_id, subject_id, assessment_type, term), record in latest.items():
                row = (
                    self.db.query(AssessmentModel)
                    .filter(
                        AssessmentModel.student_id == student_id,
                        AssessmentModel.subject_id == subject_id,
                        AssessmentModel.assessment_type == assessment_type,
                        AssessmentModel.term == term,
                    )
                    .first()
                )
                if row is None:
                    row = AssessmentModel(
                        student_id=student_id,
                        subject_id=subject_id,
                        assessment_type=assessment_type,
                        term=term,
                    )
                    self.db.add(row)
                row.score = record.score
                row.is_absent = record.is_absent
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return len(latest)

    def fetch_student_class(self, student_id: int) -> Optional[int]:
        """명단에 등록된 학생의 반 ID (등록되지 않은 학생이면 None)"""
        row = self.db.query(StudentModel.class_id).filter(StudentModel.id == student_id).first()
        return row[0] if row else None

    def fetch_class_roster(self, class_id: int, term: str) -> List[int]:
        # 학생은 한 반에 소속되고 학기별 명단은 따로 관리하지 않음
        rows = self.db.query(StudentModel.id).filter(StudentModel.class_id == class_id).all()
        return [r[0] for r in rows]

    def fetch_class_assessments(self, class_id: int, term: str) -> List[AssessmentScore]:
        student_ids = self.fetch_class_roster(class_id, term)
        if not student_ids:
            return []
        rows = (
            self.db.query(AssessmentModel)
            .filter(AssessmentModel.student_id.in_(student_ids), AssessmentModel.term == term)
            .all()
        )
        return [_to_score(r) for r in rows]

    # ==========================================================
    # [성적 정책]
    # ==========================================================

    def _policy_row(self, policy_id: int) -> GradingPolicyModel:
        row = self.db.query(GradingPolicyModel).filter(GradingPolicyModel.id == policy_id).first()
        if row is None:
            raise PolicyNotFound(f"grading policy {policy_id} not found")
        return row

    def _activation_row(self) -> PolicyActivationModel:
        row = self.db.query(PolicyActivationModel).filter(PolicyActivationModel.id == ACTIVATION_ROW_ID).first()
        if row is None:
            row = PolicyActivationModel(id=ACTIVATION_ROW_ID, active_policy_id=None, version=0)
            self.db.add(row)
            self.db.flush()
        return row

    def get_policy(self, policy_id: int) -> GradingPolicy:
        return _to_policy(self._policy_row(policy_id))

    def list_policies(self) -> List[GradingPolicy]:
        rows = self.db.query(GradingPolicyModel).order_by(GradingPolicyModel.id).all()
        return [_to_policy(r) for r in rows]

    def get_active_policy(self) -> GradingPolicy:
        activation = self.db.query(PolicyActivationModel).filter(PolicyActivationModel.id == ACTIVATION_ROW_ID).first()
        if activation is None or activation.active_policy_id is None:
            raise NoActivePolicy("no grading policy is active")
        return _to_policy(self._policy_row(activation.active_policy_id))

    def activation_version(self) -> int:
        activation = self.db.query(PolicyActivationModel).filter(PolicyActivationModel.id == ACTIVATION_ROW_ID).first()
        return activation.version if activation else 0

    def create_policy(self, draft: GradingPolicyDraft) -> GradingPolicy:
        validate_policy_draft(draft)
        row = GradingPolicyModel(**draft.model_dump(mode="json"), lifecycle_state=LifecycleState.DRAFT.value)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"created grading policy id={row.id} name={row.name!r} method={row.method}")
        return _to_policy(row)

    def update_policy(self, policy_id: int, draft: GradingPolicyDraft) -> GradingPolicy:
        row = self._policy_row(policy_id)
        check_editable(row.lifecycle_state)
        validate_policy_draft(draft)
        for key, value in draft.model_dump(mode="json").items():
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        return _to_policy(row)

    def activate_policy(self, policy_id: int, expected_version: Optional[int] = None) -> GradingPolicy:
        """
        정책 활성화 (이전 활성 정책은 archived)
        - activation.version 이 읽은 값(또는 expected_version)과 같을 때만 반영
        - 상태 변경과 포인터 변경은 한 트랜잭션
        """
        try:
            row = self._policy_row(policy_id)
            activation = self._activation_row()
            version = activation.version

            if expected_version is not None and expected_version != version:
                raise PolicyActivationConflict(
                    f"activation version is {version}, expected {expected_version}"
                )
            if activation.active_policy_id == policy_id and row.lifecycle_state == LifecycleState.ACTIVE.value:
                self.db.commit()
                return _to_policy(row)

            check_transition(row.lifecycle_state, LifecycleState.ACTIVE)
            previous_id = activation.active_policy_id

            updated = (
                self.db.query(PolicyActivationModel)
                .filter(PolicyActivationModel.id == ACTIVATION_ROW_ID, PolicyActivationModel.version == version)
                .update({"active_policy_id": policy_id, "version": version + 1}, synchronize_session=False)
            )
            if updated != 1:
                raise PolicyActivationConflict("grading policy was activated concurrently")

            if previous_id is not None:
                previous = self._policy_row(previous_id)
                check_transition(previous.lifecycle_state, LifecycleState.ARCHIVED)
                previous.lifecycle_state = LifecycleState.ARCHIVED.value

            row.lifecycle_state = LifecycleState.ACTIVE.value
            row.activated_at = datetime.now(timezone.utc)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(row)
        logger.info(f"activated grading policy id={policy_id} (archived={previous_id}, version={version + 1})")
        return _to_policy(row)

    # ==========================================================
    # [석차 / 성적표]
    # ==========================================================

    def current_rank_version(self, class_id: int, term: str) -> int:
        row = (
            self.db.query(RankVersionModel)
            .filter(RankVersionModel.class_id == class_id, RankVersionModel.term == term)
            .first()
        )
        return row.version if row else 0

    def persist_rank_entries(self, class_id: int, term: str, entries: List[RankEntry], expected_version: int) -> int:
        """
        석차 전체를 한 트랜잭션으로 기록하고 새 버전을 반환
        - 다른 재계산이 먼저 기록했으면 ConcurrentRecomputeConflict (아무것도 기록하지 않음)
        """
        new_version = expected_version + 1
        try:
            counter = (
                self.db.query(RankVersionModel)
                .filter(RankVersionModel.class_id == class_id, RankVersionModel.term == term)
                .first()
            )
            if counter is None:
                self.db.add(RankVersionModel(class_id=class_id, term=term, version=0))
                self.db.flush()

            updated = (
                self.db.query(RankVersionModel)
                .filter(
                    RankVersionModel.class_id == class_id,
                    RankVersionModel.term == term,
                    RankVersionModel.version == expected_version,
                )
                .update({"version": new_version}, synchronize_session=False)
            )
            if updated != 1:
                raise ConcurrentRecomputeConflict(
                    f"ranks for class {class_id} / {term!r} were recomputed concurrently"
                )

            for entry in entries:
                card = self._report_card_row(entry.student_id, term)
                card.class_id = class_id
                card.class_rank = entry.class_rank
                card.qa1_rank = entry.qa1_rank
                card.qa2_rank = entry.qa2_rank
                card.total_students = entry.total_students
                card.recompute_version = new_version
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return new_version

    def fetch_rank_entries(self, class_id: int, term: str) -> List[RankEntry]:
        """마지막 재계산이 기록한 석차만 (반을 옮긴 학생의 예전 석차는 제외)"""
        version = self.current_rank_version(class_id, term)
        if version == 0:
            return []
        rows = (
            self.db.query(ReportCardModel)
            .filter(
                ReportCardModel.class_id == class_id,
                ReportCardModel.term == term,
                ReportCardModel.recompute_version == version,
            )
            .order_by(ReportCardModel.student_id)
            .all()
        )
        return [RankEntry.model_validate(r) for r in rows]

    def _report_card_row(self, student_id: int, term: str) -> ReportCardModel:
        card = (
            self.db.query(ReportCardModel)
            .filter(ReportCardModel.student_id == student_id, ReportCardModel.term == term)
            .first()
        )
        if card is None:
            card = ReportCardModel(student_id=student_id, term=term)
            self.db.add(card)
        return card

    def get_report_card(self, student_id: int, term: str) -> Optional[ReportCardModel]:
        return (
            self.db.query(ReportCardModel)
            .filter(ReportCardModel.student_id == student_id, ReportCardModel.term == term)
            .first()
        )

    def upsert_report_card(self, data: ReportCardUpsert) -> ReportCardModel:
        """
        담임 입력 항목(출결, 의견)만 기록. 석차 필드는 건드리지 않음
        - 반은 입력값이 아니라 명단에서 가져옴
        """
        try:
            card = self._report_card_row(data.student_id, data.term)
            for key, value in data.model_dump(exclude={"student_id", "term"}, exclude_unset=True).items():
                setattr(card, key, value)
            class_id = self.fetch_student_class(data.student_id)
            if class_id is not None:
                card.class_id = class_id
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(card)
        return card


def seed_default_policy(store: SqlGradingStore, name: str, pass_mark: float) -> Optional[GradingPolicy]:
    """정책이 하나도 없으면 기본 정책(가중 평균 30-30-40)을 만들어 활성화"""
    if store.list_policies():
        return None
    policy = store.create_policy(default_policy_draft(name, pass_mark))
    logger.info(f"seeded default grading policy id={policy.id}")
    return store.activate_policy(policy.id)

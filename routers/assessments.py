from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends

from dependencies.grading import get_auto_switcher, get_rank_engine, get_store
from schemas.assessments import ResolvePreviewRequest, StudentResultsSubmission
from schemas.report_cards import ReportCardUpsert
from services.grading.auto_switch import PolicyAutoSwitcher
from services.grading.ranking import ClassRankEngine
from services.grading.resolver import resolve
from services.grading.store import SqlGradingStore
from services.grading.workflow import save_assessment, submit_student_results

router = APIRouter(prefix="/assessments", tags=["평가 점수"])

_REPORT_CARD_FIELDS = ("days_present", "days_absent", "days_late", "teacher_remarks")


# ==========================================================
# [1단계] 성적 입력
# ==========================================================

# ✅ [SUBMIT] 학생 한 명의 성적 일괄 저장 → 석차 재계산 → 정책 자동 전환 판단
@router.post("/submit")
def submit_results(
    submission: StudentResultsSubmission,
    store: SqlGradingStore = Depends(get_store),
    engine: ClassRankEngine = Depends(get_rank_engine),
    switcher: PolicyAutoSwitcher = Depends(get_auto_switcher),
):
    report_card = None
    given = submission.model_dump(include=set(_REPORT_CARD_FIELDS), exclude_none=True)
    if given:
        report_card = ReportCardUpsert(student_id=submission.student_id, term=submission.term, **given)

    result = submit_student_results(
        store, engine, switcher,
        student_id=submission.student_id,
        term=submission.term,
        records=submission.records,
        class_id=submission.class_id,
        report_card=report_card,
    )
    message = "Results saved and ranks recalculated"
    if result.auto_switch and result.auto_switch.switched:
        message += "; grading switched to End of Term Only"
    return {"success": True, "data": result, "message": message}


# ✅ [UPSERT] 평가 점수 한 건 저장 → 그 학생 반의 석차 재계산
@router.post("/upsert")
def upsert_assessment(record: Dict[str, Any] = Body(...), term: Optional[str] = None,
                      store: SqlGradingStore = Depends(get_store),
                      engine: ClassRankEngine = Depends(get_rank_engine)):
    normalized, ranks = save_assessment(store, engine, record, term=term)
    return {"success": True, "data": normalized, "ranks": ranks, "message": "Assessment saved and ranks recalculated"}


# ==========================================================
# [2단계] 조회 / 미리보기
# ==========================================================

# ✅ [READ] 특정 학생의 평가 점수
@router.get("/student/{student_id}")
def read_student_assessments(student_id: int, term: Optional[str] = None,
                             store: SqlGradingStore = Depends(get_store)):
    records: List = store.fetch_assessments(student_id, term)
    return {"success": True, "data": records}


# ✅ [PREVIEW] 저장 없이 최종 점수/등급 계산 (입력 화면 실시간 미리보기)
@router.post("/preview")
def preview_resolution(request: ResolvePreviewRequest, store: SqlGradingStore = Depends(get_store)):
    policy = store.get_policy(request.policy_id) if request.policy_id else store.get_active_policy()
    result = resolve(request.components, policy)
    return {"success": True, "data": result, "policy_id": policy.id}

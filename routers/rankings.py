from fastapi import APIRouter, Depends

from dependencies.grading import get_rank_engine, get_store
from services.grading.ranking import ClassRankEngine
from services.grading.store import SqlGradingStore

router = APIRouter(prefix="/rankings", tags=["반 석차"])


# ✅ [RECOMPUTE] 반 + 학기 석차 전체 재계산 후 저장
@router.post("/{class_id}/recompute")
def recompute_ranks(class_id: int, term: str, engine: ClassRankEngine = Depends(get_rank_engine)):
    entries = engine.recompute(class_id, term)
    return {
        "success": True,
        "data": entries,
        "message": "total_students counts the whole roster, including students without a rank",
    }


# ✅ [READ] 저장된 석차 조회 (등수 순)
@router.get("/{class_id}")
def read_ranks(class_id: int, term: str, store: SqlGradingStore = Depends(get_store)):
    entries = store.fetch_rank_entries(class_id, term)
    # 석차 없는 학생은 뒤로
    entries.sort(key=lambda e: (e.class_rank is None, e.class_rank or 0, e.student_id))
    return {"success": True, "data": entries}

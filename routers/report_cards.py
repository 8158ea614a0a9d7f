from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.grading import get_store
from models.subjects import Subject as SubjectModel
from schemas.report_cards import ReportCard as ReportCardSchema
from schemas.report_cards import ReportCardUpsert
from services.grading.report import build_student_report
from services.grading.store import SqlGradingStore

router = APIRouter(prefix="/report-cards", tags=["성적표"])


# ✅ [UPSERT] 출결 / 담임 의견 저장 (석차는 엔진만 기록)
@router.post("/upsert")
def upsert_report_card(data: ReportCardUpsert, store: SqlGradingStore = Depends(get_store)):
    card = store.upsert_report_card(data)
    return {"success": True, "data": ReportCardSchema.model_validate(card), "message": "Report card saved"}


# ✅ [READ] 학생 성적표 (과목별 점수/등급 + 평가별 통계 + 석차 + 출결)
@router.get("/student/{student_id}")
def read_student_report(student_id: int, term: str,
                        store: SqlGradingStore = Depends(get_store),
                        db: Session = Depends(get_db)):
    subject_names = {s.id: s.name for s in db.query(SubjectModel).all()}
    report = build_student_report(store, student_id, term, subject_names=subject_names)
    if not report.subjects and store.get_report_card(student_id, term) is None:
        raise HTTPException(status_code=404, detail="No results found for this student and term")
    return {"success": True, "data": report}

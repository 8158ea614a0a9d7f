import argparse
import csv
import logging

from sqlalchemy.orm import Session

from config.settings import settings
from database.db import Base, SessionLocal, engine
import models.assessments  # noqa: F401  ✅ 테이블 등록
import models.classes  # noqa: F401
import models.grading_policies  # noqa: F401
import models.report_cards  # noqa: F401
import models.students  # noqa: F401
import models.subjects  # noqa: F401
from services.grading.ingestion import normalize_records
from services.grading.ranking import ClassRankEngine
from services.grading.store import SqlGradingStore

logger = logging.getLogger("import_assessments")

CSV_PATH = "data/assessments.csv"  # ✅ 기본 파일 경로


def import_assessments(csv_path: str, term: str, recompute: bool = True, db: Session = None) -> int:
    """
    CSV → assessments 테이블 (ingestion 계층에서 필드명/평가종류 정규화)
    - 열 예시: student_id, subject_id, assessment_type, score, is_absent
    - 저장 후 가져온 학생들이 속한 반(명단 기준)의 석차를 전부 다시 계산
    """
    own_session = db is None
    db = db or SessionLocal()
    try:
        with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
            records = normalize_records(csv.DictReader(csvfile), term=term)

        store = SqlGradingStore(db)
        count = store.upsert_assessments(records)
        logger.info(f"imported {count} assessment rows from {csv_path}")

        if recompute:
            classes = {sid: store.fetch_student_class(sid) for sid in {r.student_id for r in records}}
            unregistered = sorted(sid for sid, class_id in classes.items() if class_id is None)
            if unregistered:
                logger.warning(f"students without a class are not ranked: {unregistered}")
            rank_engine = ClassRankEngine(store, precision=settings.RANK_SCORE_PRECISION)
            for class_id in sorted({c for c in classes.values() if c is not None}):
                rank_engine.recompute(class_id, term)
        return count
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="평가 점수 CSV 가져오기")
    parser.add_argument("--csv", default=CSV_PATH)
    parser.add_argument("--term", required=True, help='예: "Term 1, 2024/2025"')
    parser.add_argument("--no-recompute", action="store_true", help="가져온 뒤 석차를 다시 계산하지 않음")
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL)
    Base.metadata.create_all(bind=engine)
    total = import_assessments(args.csv, args.term, recompute=not args.no_recompute)
    print(f"✅ 평가 점수 CSV → DB 가져오기 완료 ({total}건)")

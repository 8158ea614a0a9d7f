from fastapi import Depends
from sqlalchemy.orm import Session

from config.settings import settings
from database.db import get_db
from services.grading.auto_switch import PolicyAutoSwitcher
from services.grading.ranking import ClassRankEngine
from services.grading.store import SqlGradingStore


# ✅ 요청 단위 저장소 (DB 세션 공유)
def get_store(db: Session = Depends(get_db)) -> SqlGradingStore:
    return SqlGradingStore(db)


# ✅ 석차 엔진 (잠금은 프로세스 전역 공유)
def get_rank_engine(store: SqlGradingStore = Depends(get_store)) -> ClassRankEngine:
    return ClassRankEngine(store, precision=settings.RANK_SCORE_PRECISION)


# ✅ 정책 자동 전환기 (설정으로 끌 수 있음)
def get_auto_switcher(store: SqlGradingStore = Depends(get_store)) -> PolicyAutoSwitcher:
    return PolicyAutoSwitcher(
        store,
        enabled=settings.POLICY_AUTO_SWITCH_ENABLED,
        policy_name=settings.AUTO_SWITCH_POLICY_NAME,
        fallback_pass_mark=settings.DEFAULT_PASS_MARK,
    )

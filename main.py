from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from config.settings import settings
from database.db import Base, SessionLocal, engine

# ✅ 로그 레벨은 설정(.env LOG_LEVEL)에서
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# ✅ 미들웨어 임포트
from middlewares.timing import TimingMiddleware
from middlewares.error_handler import add_error_handlers

# ✅ 테이블 생성을 위해 모델 전부 등록
import models.assessments  # noqa: F401
import models.classes  # noqa: F401
import models.grading_policies  # noqa: F401
import models.report_cards  # noqa: F401
import models.students  # noqa: F401
import models.subjects  # noqa: F401

# ✅ 라우터 임포트
from routers import (
    assessments as assessments_router,
    classes, grading_policies as grading_policies_router,
    rankings, report_cards as report_cards_router,
    students, subjects,
)
from services.grading.store import SqlGradingStore, seed_default_policy

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
)

# ✅ CORS 설정 (프론트엔드 연동)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ 요청 지연 측정 미들웨어 (응답 헤더 X-Latency-Ms 추가)
app.add_middleware(TimingMiddleware)

# ✅ 전역 에러 핸들러 등록 (일관된 JSON 에러 포맷)
add_error_handlers(app)

# ✅ /v1 프리픽스 라우터 등록
app.include_router(assessments_router.router,      prefix="/v1")
app.include_router(grading_policies_router.router, prefix="/v1")
app.include_router(rankings.router,                prefix="/v1")
app.include_router(report_cards_router.router,     prefix="/v1")
app.include_router(classes.router,                 prefix="/v1")
app.include_router(students.router,                prefix="/v1")
app.include_router(subjects.router,                prefix="/v1")


@app.on_event("startup")
def _prepare_database():
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
    if settings.SEED_DEFAULT_POLICY:
        db = SessionLocal()
        try:
            seed_default_policy(SqlGradingStore(db), settings.DEFAULT_POLICY_NAME, settings.DEFAULT_PASS_MARK)
        finally:
            db.close()
    logger.info(f"{settings.APP_TITLE} started (env={settings.ENV})")


# ✅ 헬스체크 엔드포인트
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "API is running"}

# ✅ 루트 엔드포인트
@app.get("/")
def root():
    return {"message": f"{settings.APP_TITLE} - {settings.APP_DESCRIPTION}"}

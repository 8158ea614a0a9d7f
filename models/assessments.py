from sqlalchemy import Column, Integer, Float, String, Boolean, UniqueConstraint
from database.db import Base

class Assessment(Base):
    __tablename__ = "assessments"  # 평가 점수 테이블 (QA1 / QA2 / 기말)

    id = Column(Integer, primary_key=True, index=True)           # 평가 고유 ID (Primary Key)
    student_id = Column(Integer, nullable=False, index=True)     # 학생 ID
    subject_id = Column(Integer, nullable=False)                 # 과목 ID
    term = Column(String(50), nullable=False, index=True)        # 학기 (예: Term 1, 2024/2025)
    assessment_type = Column(String(20), nullable=False)         # qa1 / qa2 / end_of_term
    score = Column(Float, nullable=True)                         # 점수 (0~100, 미입력 시 NULL)
    is_absent = Column(Boolean, nullable=False, default=False)   # 결시 여부

    # ✅ (학생, 과목, 평가종류, 학기)당 한 행만 존재 → upsert 키
    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", "assessment_type", "term", name="uq_assessment_key"),
    )

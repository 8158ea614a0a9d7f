from sqlalchemy import Column, Integer, String, Text, UniqueConstraint
from database.db import Base

class ReportCard(Base):
    __tablename__ = "report_cards"  # 학생별 학기 성적표 (석차 + 출결 + 담임 의견)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)     # 학생 ID
    class_id = Column(Integer, nullable=True)                    # 반 ID
    term = Column(String(50), nullable=False)                    # 학기

    # ✅ 석차 값은 ClassRankEngine만 기록
    class_rank = Column(Integer, nullable=True)                  # 종합 석차
    qa1_rank = Column(Integer, nullable=True)                    # QA1 석차
    qa2_rank = Column(Integer, nullable=True)                    # QA2 석차
    total_students = Column(Integer, nullable=True)              # 반 재적 인원
    recompute_version = Column(Integer, nullable=True)           # 석차를 기록한 재계산 버전

    # ✅ 담임 입력 항목
    days_present = Column(Integer, nullable=True)                # 출석 일수
    days_absent = Column(Integer, nullable=True)                 # 결석 일수
    days_late = Column(Integer, nullable=True)                   # 지각 일수
    teacher_remarks = Column(Text, nullable=True)                # 담임 의견

    __table_args__ = (
        UniqueConstraint("student_id", "term", name="uq_report_card_student_term"),
    )


class RankVersion(Base):
    """(반, 학기)별 석차 재계산 버전 카운터. 오래된 재계산 결과 기록 방지용"""
    __tablename__ = "rank_versions"

    class_id = Column(Integer, primary_key=True)
    term = Column(String(50), primary_key=True)
    version = Column(Integer, nullable=False, default=0)

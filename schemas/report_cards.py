from pydantic import BaseModel, Field
from typing import Optional

# ✅ 입력용: 담임이 입력하는 출결/의견만 허용 (석차 필드 없음, 반은 명단에서)
class ReportCardUpsert(BaseModel):
    student_id: int                                         # 학생 ID
    term: str                                               # 학기
    days_present: Optional[int] = Field(default=None, ge=0) # 출석 일수
    days_absent: Optional[int] = Field(default=None, ge=0)  # 결석 일수
    days_late: Optional[int] = Field(default=None, ge=0)    # 지각 일수
    teacher_remarks: Optional[str] = None                   # 담임 의견

# ✅ 출력용
class ReportCard(ReportCardUpsert):
    id: int
    class_id: Optional[int] = None
    class_rank: Optional[int] = None
    qa1_rank: Optional[int] = None
    qa2_rank: Optional[int] = None
    total_students: Optional[int] = None
    recompute_version: Optional[int] = None

    class Config:
        from_attributes = True

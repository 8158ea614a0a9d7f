from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AssessmentType(str, Enum):
    QA1 = "qa1"                  # 1차 정기평가 (Quarterly Assessment 1)
    QA2 = "qa2"                  # 2차 정기평가
    END_OF_TERM = "end_of_term"  # 기말고사


# ✅ 엔진이 받는 유일한 형태 (ingestion 계층에서 정규화된 뒤)
class AssessmentScore(BaseModel):
    student_id: int
    subject_id: int
    assessment_type: AssessmentType
    score: Optional[float] = None            # 0~100, 결시/미입력이면 None
    is_absent: bool = False                  # True면 score와 무관하게 산출에서 제외
    term: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


# ✅ 한 과목의 평가 구성요소 하나
class ComponentScore(BaseModel):
    score: Optional[float] = None
    is_absent: bool = False

    model_config = ConfigDict(frozen=True)


# ✅ 한 과목의 QA1 / QA2 / 기말 묶음
class SubjectComponents(BaseModel):
    qa1: ComponentScore = Field(default_factory=ComponentScore)
    qa2: ComponentScore = Field(default_factory=ComponentScore)
    end_of_term: ComponentScore = Field(default_factory=ComponentScore)

    model_config = ConfigDict(frozen=True)


# ✅ 입력용: 학생 한 명의 성적 일괄 제출
#   - records는 필드명이 제각각인 외부 레코드도 허용 (ingestion에서 정규화)
class StudentResultsSubmission(BaseModel):
    student_id: int
    class_id: Optional[int] = None          # 생략 시 명단의 반. 주면 명단과 같아야 함
    term: str
    records: List[Dict[str, Any]]
    days_present: Optional[int] = Field(default=None, ge=0)
    days_absent: Optional[int] = Field(default=None, ge=0)
    days_late: Optional[int] = Field(default=None, ge=0)
    teacher_remarks: Optional[str] = None


# ✅ 입력용: 실시간 미리보기 (저장하지 않음)
class ResolvePreviewRequest(BaseModel):
    components: SubjectComponents
    policy_id: Optional[int] = None          # 생략 시 활성 정책 사용

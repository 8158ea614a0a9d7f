from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from schemas.grading_policies import GradingPolicy


# ✅ 과목별 최종 점수/등급 (파생 값, 저장하지 않음)
class SubjectResult(BaseModel):
    student_id: Optional[int] = None
    subject_id: Optional[int] = None
    final_score: Optional[float] = None
    letter_grade: str

    model_config = ConfigDict(frozen=True)


# ✅ 반 석차 한 줄 (ClassRankEngine만 값을 만든다)
class RankEntry(BaseModel):
    student_id: int
    class_id: int
    term: str
    class_rank: Optional[int] = None   # 산출 가능한 과목이 하나도 없으면 None
    qa1_rank: Optional[int] = None
    qa2_rank: Optional[int] = None
    total_students: int                # 재적 인원 (석차 대상 인원이 아님)

    model_config = ConfigDict(from_attributes=True, frozen=True)


class AutoSwitchDecision(BaseModel):
    switched: bool
    created: bool = False
    policy: Optional[GradingPolicy] = None
    reason: str


class SubmissionResult(BaseModel):
    student_id: int
    class_id: int
    term: str
    subjects: List[SubjectResult]
    ranks: List[RankEntry]
    auto_switch: Optional[AutoSwitchDecision] = None


# ✅ 성적표 화면용 평가 종류별 통계
class AssessmentStat(BaseModel):
    term_average: Optional[float] = None
    overall_grade: str
    class_rank: Optional[int] = None


class SubjectReportRow(BaseModel):
    subject_id: int
    subject_name: Optional[str] = None
    qa1: Optional[float] = None
    qa2: Optional[float] = None
    end_of_term: Optional[float] = None
    qa1_absent: bool = False
    qa2_absent: bool = False
    end_of_term_absent: bool = False
    final_score: Optional[float] = None
    grade: str


class Attendance(BaseModel):
    present: Optional[int] = None
    absent: Optional[int] = None
    late: Optional[int] = None


class StudentReport(BaseModel):
    student_id: int
    term: str
    class_id: Optional[int] = None
    class_rank: Optional[int] = None
    total_students: Optional[int] = None
    attendance: Attendance
    teacher_remarks: Optional[str] = None
    subjects: List[SubjectReportRow]
    assessment_stats: Dict[str, AssessmentStat]   # qa1 / qa2 / end_of_term / overall
    overall_term_average: Optional[float] = None
    calculation_method: str
    grading_policy: GradingPolicy

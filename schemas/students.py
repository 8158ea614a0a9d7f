from pydantic import BaseModel
from typing import Optional

# ✅ 입력용 (POST)
class StudentCreate(BaseModel):
    student_name: str                        # 학생 이름
    class_id: int                            # 소속 반 ID
    exam_number: Optional[str] = None        # 시험 번호
    photo_url: Optional[str] = None          # 사진 경로

# ✅ 전체 출력용 (GET, 상세조회 등)
class Student(StudentCreate):
    id: int

    class Config:
        from_attributes = True  # Pydantic v2 기준

from pydantic import BaseModel
from typing import Optional

# ✅ 입력용
class ClassCreate(BaseModel):
    name: str                                # 학급 이름
    term: str                                # 현재 학기
    academic_year: Optional[str] = None      # 학년도

# ✅ 출력용
class Class(ClassCreate):
    id: int

    class Config:
        from_attributes = True

from pydantic import BaseModel

# ✅ 입력용
class SubjectCreate(BaseModel):
    name: str                                # 과목 이름

# ✅ 출력용
class Subject(SubjectCreate):
    id: int

    class Config:
        from_attributes = True

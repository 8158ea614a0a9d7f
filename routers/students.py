from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database.db import get_db
from models.classes import Class as ClassModel
from models.students import Student as StudentModel
from schemas.students import Student as StudentSchema
from schemas.students import StudentCreate

router = APIRouter(prefix="/students", tags=["학생"])


# ✅ [CREATE] 학생 등록 (반 명단 = 석차 계산의 재적 인원)
@router.post("/", status_code=201)
def create_student(payload: StudentCreate, db: Session = Depends(get_db)):
    if db.query(ClassModel).filter(ClassModel.id == payload.class_id).first() is None:
        raise HTTPException(status_code=404, detail="Class not found")
    student = StudentModel(**payload.model_dump())
    db.add(student)
    db.commit()
    db.refresh(student)
    return {"success": True, "data": StudentSchema.model_validate(student)}


# ✅ [READ] 반별 학생 목록
@router.get("/")
def read_students(class_id: int = None, db: Session = Depends(get_db)):
    query = db.query(StudentModel)
    if class_id is not None:
        query = query.filter(StudentModel.class_id == class_id)
    return {"success": True, "data": [StudentSchema.model_validate(s) for s in query.order_by(StudentModel.id).all()]}


# ✅ [READ] 시험 번호로 학생 조회
@router.get("/exam-number/{exam_number}")
def read_student_by_exam_number(exam_number: str, db: Session = Depends(get_db)):
    student = db.query(StudentModel).filter(StudentModel.exam_number == exam_number).first()
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return {"success": True, "data": StudentSchema.model_validate(student)}

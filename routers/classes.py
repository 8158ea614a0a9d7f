from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from models.classes import Class as ClassModel
from models.students import Student as StudentModel
from schemas.classes import Class as ClassSchema
from schemas.classes import ClassCreate

router = APIRouter(prefix="/classes", tags=["학급"])


# ✅ [CREATE] 학급 등록
@router.post("/", status_code=201)
def create_class(payload: ClassCreate, db: Session = Depends(get_db)):
    db_class = ClassModel(**payload.model_dump())
    db.add(db_class)
    db.commit()
    db.refresh(db_class)
    return {"success": True, "data": ClassSchema.model_validate(db_class)}


# ✅ [READ] 전체 학급 + 재적 인원
@router.get("/")
def read_classes(db: Session = Depends(get_db)):
    classes = db.query(ClassModel).order_by(ClassModel.id).all()
    return {
        "success": True,
        "data": [
            {
                **ClassSchema.model_validate(c).model_dump(),
                "student_count": db.query(StudentModel).filter(StudentModel.class_id == c.id).count(),
            }
            for c in classes
        ],
    }

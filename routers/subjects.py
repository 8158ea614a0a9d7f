from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from models.subjects import Subject as SubjectModel
from schemas.subjects import Subject as SubjectSchema
from schemas.subjects import SubjectCreate

router = APIRouter(prefix="/subjects", tags=["과목"])


# ✅ [CREATE] 과목 등록
@router.post("/", status_code=201)
def create_subject(payload: SubjectCreate, db: Session = Depends(get_db)):
    subject = SubjectModel(**payload.model_dump())
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return {"success": True, "data": SubjectSchema.model_validate(subject)}


# ✅ [READ] 전체 과목
@router.get("/")
def read_subjects(db: Session = Depends(get_db)):
    subjects = db.query(SubjectModel).order_by(SubjectModel.id).all()
    return {"success": True, "data": [SubjectSchema.model_validate(s) for s in subjects]}

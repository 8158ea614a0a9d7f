import os

# ✅ 설정 객체가 만들어지기 전에 테스트용 메모리 DB 지정
os.environ["DB_URL_OVERRIDE"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["SEED_DEFAULT_POLICY"] = "true"
os.environ["POLICY_AUTO_SWITCH_ENABLED"] = "true"

import pytest
from fastapi.testclient import TestClient

import main
from database.db import Base, SessionLocal, engine
from models.classes import Class as ClassModel
from models.students import Student as StudentModel
from models.subjects import Subject as SubjectModel
from schemas.assessments import AssessmentScore, AssessmentType
from schemas.grading_policies import GradingMethod, GradingPolicy, GradingPolicyDraft, LifecycleState
from services.grading.store import SqlGradingStore

TERM = "Term 1, 2024/2025"


def make_policy(method=GradingMethod.WEIGHTED_AVERAGE, qa1=30, qa2=30, eot=40, pass_mark=50, policy_id=1):
    """엔진 단위 테스트용 정책 스냅샷 (DB 없이)"""
    return GradingPolicy(
        id=policy_id,
        name=f"{method.value} test policy",
        method=method,
        weight_qa1=qa1,
        weight_qa2=qa2,
        weight_end_of_term=eot,
        pass_mark=pass_mark,
        lifecycle_state=LifecycleState.ACTIVE,
    )


def score(student_id, subject_id, kind, value=None, absent=False, term=TERM):
    return AssessmentScore(
        student_id=student_id,
        subject_id=subject_id,
        assessment_type=AssessmentType(kind),
        score=value,
        is_absent=absent,
        term=term,
    )


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return SqlGradingStore(db)


@pytest.fixture
def active_policy(store):
    policy = store.create_policy(GradingPolicyDraft(
        name="Default Weighting (30-30-40)",
        method=GradingMethod.WEIGHTED_AVERAGE,
        weight_qa1=30, weight_qa2=30, weight_end_of_term=40,
        pass_mark=50,
    ))
    return store.activate_policy(policy.id)


@pytest.fixture
def school(db):
    """반 1개, 학생 4명, 과목 2개"""
    klass = ClassModel(name="Standard 8A", term=TERM, academic_year="2024/2025")
    db.add(klass)
    db.flush()
    students = [
        StudentModel(student_name=name, exam_number=f"EX{i:03d}", class_id=klass.id)
        for i, name in enumerate(["Chikondi", "Thandiwe", "Kondwani", "Mphatso"], start=1)
    ]
    subjects = [SubjectModel(name="Mathematics"), SubjectModel(name="English")]
    db.add_all(students + subjects)
    db.commit()
    return {
        "class_id": klass.id,
        "student_ids": [s.id for s in students],
        "subject_ids": [s.id for s in subjects],
    }


@pytest.fixture
def client(db):
    with TestClient(main.app) as test_client:
        yield test_client

from sqlalchemy import Column, Integer, String
from database.db import Base

class Class(Base):
    __tablename__ = "classes"  # 학급 정보 테이블

    id = Column(Integer, primary_key=True, index=True)      # 학급 고유 ID (PK)
    name = Column(String(100), nullable=False)              # 학급 이름 (예: Standard 8A)
    term = Column(String(50), nullable=False)               # 현재 학기 (예: Term 1, 2024/2025)
    academic_year = Column(String(20))                      # 학년도 (예: 2024/2025)

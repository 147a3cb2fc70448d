from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, func
from sqlalchemy.orm import relationship
from ..database import Base

class User(Base):
    """
    로그인하여 프로젝트를 만들거나 참가하는 사용자를 나타냅니다.
    인증 정보(해시, salt, 역할, 상태)와 매칭에 쓰이는 프로필
    (StrengthsFinder 資質, 16타입, 스킬, 경력 연수 등)을 함께 보관합니다.
    """
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    password_salt = Column(String, nullable=True)
    role = Column(String, nullable=False, default="member")
    status = Column(String, nullable=False, default="active")

    bio = Column(Text, default="")
    strengths_finder = Column(JSON, nullable=True)
    sixteen_types = Column(JSON, nullable=True)
    skills = Column(JSON, nullable=True)
    experience_years = Column(Integer, nullable=False, default=0)
    availability = Column(JSON, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    participations = relationship("ProjectParticipant", back_populates="user", cascade="all, delete-orphan")
    owned_projects = relationship("Project", back_populates="owner")

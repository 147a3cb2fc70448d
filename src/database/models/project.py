from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base

class Project(Base):
    """
    사용자가 팀원을 모집하는 프로젝트를 나타냅니다.
    필요 스킬, 선호 資質, 선호 16타입은 매칭 점수 계산에 사용됩니다.
    status는 'recruiting', 'active', 'completed' 등 자유 문자열이며 전이 규칙은 없습니다.
    """
    __tablename__ = "projects"
    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False)
    status = Column(String, nullable=False, default="recruiting")

    required_skills = Column(JSON, nullable=True)
    preferred_types = Column(JSON, nullable=True)
    preferred_strengths = Column(JSON, nullable=True)

    team_size = Column(Integer, default=3)
    duration_weeks = Column(Integer, default=8)
    commitment_hours = Column(Integer, default=10)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="owned_projects")
    participants = relationship("ProjectParticipant", back_populates="project", cascade="all, delete-orphan")

    @property
    def current_members(self) -> int:
        return sum(1 for p in self.participants if p.status == "accepted")

    @property
    def pending_applications(self) -> int:
        return sum(1 for p in self.participants if p.status == "applied")

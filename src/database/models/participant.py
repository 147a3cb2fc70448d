from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base

class ProjectParticipant(Base):
    """
    프로젝트(Project)와 사용자(User) 사이의 참가 기록을 나타내는 연관 모델입니다.
    (project_id, user_id) 쌍마다 하나의 행만 존재하도록 유니크 제약을 둡니다.
    """
    __tablename__ = "project_participants"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_participant"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default="applied")
    role_in_project = Column(String, nullable=False, default="member")
    message = Column(Text, nullable=True)
    response_message = Column(Text, nullable=True)
    joined_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    project = relationship("Project", back_populates="participants")
    user = relationship("User", back_populates="participations")

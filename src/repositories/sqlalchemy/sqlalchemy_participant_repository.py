from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from src.database import models
from src.repositories.interfaces import IParticipantRepository, ParticipantInsertResult

class SqlalchemyParticipantRepository(IParticipantRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def add(self, participant_model: models.ProjectParticipant) -> ParticipantInsertResult:
        self.db.add(participant_model)
        try:
            self.db.commit()
        except IntegrityError:
            # (project_id, user_id) 유니크 제약 위반
            self.db.rollback()
            return ParticipantInsertResult(created=False)
        self.db.refresh(participant_model)
        return ParticipantInsertResult(created=True, participant=participant_model)

    def find_in_project(self, participant_id: int, project_id: int) -> Optional[models.ProjectParticipant]:
        return self.db.query(models.ProjectParticipant).filter(
            models.ProjectParticipant.id == participant_id,
            models.ProjectParticipant.project_id == project_id,
        ).first()

    def list_by_project(self, project_id: int) -> List[models.ProjectParticipant]:
        return (
            self.db.query(models.ProjectParticipant)
            .options(joinedload(models.ProjectParticipant.user))
            .filter(models.ProjectParticipant.project_id == project_id)
            .order_by(models.ProjectParticipant.joined_at.desc(), models.ProjectParticipant.id.desc())
            .all()
        )

    def list_accepted_by_user(self, user_id: int) -> List[models.ProjectParticipant]:
        return (
            self.db.query(models.ProjectParticipant)
            .options(joinedload(models.ProjectParticipant.project).joinedload(models.Project.owner))
            .filter(
                models.ProjectParticipant.user_id == user_id,
                models.ProjectParticipant.status == "accepted",
            )
            .order_by(models.ProjectParticipant.joined_at.desc(), models.ProjectParticipant.id.desc())
            .all()
        )

    def save(self, participant: models.ProjectParticipant) -> models.ProjectParticipant:
        self.db.commit()
        self.db.refresh(participant)
        return participant

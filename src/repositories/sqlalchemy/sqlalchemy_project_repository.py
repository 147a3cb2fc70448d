from typing import List, Optional, Sequence
from sqlalchemy.orm import Session, selectinload, joinedload
from src.database import models
from src.repositories.interfaces import IProjectRepository

class SqlalchemyProjectRepository(IProjectRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def _query(self):
        return self.db.query(models.Project).options(
            joinedload(models.Project.owner),
            selectinload(models.Project.participants),
        )

    def create(self, project_model: models.Project) -> models.Project:
        self.db.add(project_model)
        self.db.commit()
        self.db.refresh(project_model)
        return project_model

    def find_by_id(self, project_id: int) -> Optional[models.Project]:
        return self._query().filter(models.Project.id == project_id).first()

    def list_by_statuses(self, statuses: Sequence[str]) -> List[models.Project]:
        return (
            self._query()
            .filter(models.Project.status.in_(list(statuses)))
            .order_by(models.Project.created_at.desc(), models.Project.id.desc())
            .all()
        )

    def list_by_owner(self, owner_id: int) -> List[models.Project]:
        return (
            self._query()
            .filter(models.Project.owner_id == owner_id)
            .order_by(models.Project.created_at.desc(), models.Project.id.desc())
            .all()
        )

    def save(self, project: models.Project) -> models.Project:
        self.db.commit()
        self.db.refresh(project)
        return project

    def delete(self, project: models.Project) -> bool:
        if project:
            self.db.delete(project)  # 참가 기록은 cascade로 함께 삭제
            self.db.commit()
            return True
        return False

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from src.database import models

class IProjectRepository(ABC):
    @abstractmethod
    def create(self, project_model: models.Project) -> models.Project:
        """새로운 프로젝트를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, project_id: int) -> Optional[models.Project]:
        """고유 ID로 특정 프로젝트를 조회합니다."""
        pass

    @abstractmethod
    def list_by_statuses(self, statuses: Sequence[str]) -> List[models.Project]:
        """주어진 상태에 해당하는 프로젝트를 최신순으로 조회합니다."""
        pass

    @abstractmethod
    def list_by_owner(self, owner_id: int) -> List[models.Project]:
        """특정 사용자가 소유한 프로젝트를 최신순으로 조회합니다."""
        pass

    @abstractmethod
    def save(self, project: models.Project) -> models.Project:
        """변경된 프로젝트 정보를 커밋하고 최신 상태로 갱신합니다."""
        pass

    @abstractmethod
    def delete(self, project: models.Project) -> bool:
        """프로젝트와 그 참가 기록을 하나의 커밋으로 삭제합니다."""
        pass

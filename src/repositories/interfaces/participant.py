from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional
from src.database import models


@dataclass
class ParticipantInsertResult:
    """
    참가 기록 INSERT 결과.

    created가 False이면 (project_id, user_id) 유니크 제약 충돌로 삽입되지 않은 것이며,
    이때 participant는 None입니다.
    """
    created: bool
    participant: Optional[models.ProjectParticipant] = None


class IParticipantRepository(ABC):
    @abstractmethod
    def add(self, participant_model: models.ProjectParticipant) -> ParticipantInsertResult:
        """
        참가 기록을 삽입합니다. 중복 여부는 사전 조회가 아니라 저장소의 유니크 제약으로 판단합니다.
        """
        pass

    @abstractmethod
    def find_in_project(self, participant_id: int, project_id: int) -> Optional[models.ProjectParticipant]:
        """프로젝트 범위 안에서 참가 기록을 ID로 조회합니다."""
        pass

    @abstractmethod
    def list_by_project(self, project_id: int) -> List[models.ProjectParticipant]:
        """프로젝트의 참가 기록을 사용자 정보와 함께 최신순으로 조회합니다."""
        pass

    @abstractmethod
    def list_accepted_by_user(self, user_id: int) -> List[models.ProjectParticipant]:
        """사용자가 승인(accepted)된 참가 기록을 프로젝트 정보와 함께 조회합니다."""
        pass

    @abstractmethod
    def save(self, participant: models.ProjectParticipant) -> models.ProjectParticipant:
        """변경된 참가 기록을 커밋합니다."""
        pass

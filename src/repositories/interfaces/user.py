from abc import ABC, abstractmethod
from typing import List, Optional
from src.database import models

class IUserRepository(ABC):
    @abstractmethod
    def create(self, user_model: models.User) -> models.User:
        """새로운 사용자를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[models.User]:
        """고유 ID로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[models.User]:
        """이메일로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def list_all(self) -> List[models.User]:
        """모든 사용자의 목록을 최근 가입 순으로 조회합니다."""
        pass

    @abstractmethod
    def save(self, user: models.User) -> models.User:
        """변경된 사용자 정보를 커밋하고 최신 상태로 갱신합니다."""
        pass

    @abstractmethod
    def delete(self, user: models.User) -> bool:
        """
        사용자를 삭제합니다.

        사용자의 참가 기록은 함께 삭제되고, 소유한 프로젝트의 owner_id는 NULL로
        변경됩니다. 모든 변경은 하나의 커밋으로 반영됩니다.
        """
        pass

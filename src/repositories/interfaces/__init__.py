from .user import IUserRepository
from .project import IProjectRepository
from .participant import IParticipantRepository, ParticipantInsertResult

__all__ = ["IUserRepository", "IProjectRepository", "IParticipantRepository", "ParticipantInsertResult"]

from .user import User
from .project import Project
from .participant import ProjectParticipant

__all__ = ["User", "Project", "ProjectParticipant"]

from typing import Any, Dict, List

from src.database import models
from src.repositories.interfaces import IProjectRepository, IParticipantRepository
from src.services.exceptions import (
    ValidationError, ProjectNotFoundError, ApplicationNotFoundError,
    PermissionDeniedError, DuplicateApplicationError
)
from src.utils.logger import get_logger

logger = get_logger("project_service")

PUBLIC_STATUSES = ("recruiting", "active")
RESPONSE_STATUSES = ("accepted", "rejected")
LIST_FIELDS = ("required_skills", "preferred_types", "preferred_strengths")
INT_FIELDS = ("team_size", "duration_weeks", "commitment_hours")
TEXT_FIELDS = ("title", "description", "category", "status")
PROJECT_DEFAULTS = {"team_size": 3, "duration_weeks": 8, "commitment_hours": 10}


def _isoformat(value):
    return value.isoformat() if value is not None else None


def serialize_project(project: models.Project) -> Dict[str, Any]:
    """프로젝트 모델을 API 응답용 딕셔너리로 변환합니다."""
    return {
        "id": project.id,
        "title": project.title,
        "description": project.description,
        "category": project.category,
        "status": project.status,
        "owner_id": project.owner_id,
        "owner_name": project.owner.name if project.owner else None,
        "required_skills": project.required_skills or [],
        "preferred_types": project.preferred_types or [],
        "preferred_strengths": project.preferred_strengths or [],
        "team_size": project.team_size,
        "duration_weeks": project.duration_weeks,
        "commitment_hours": project.commitment_hours,
        "current_members": project.current_members,
        "created_at": _isoformat(project.created_at),
    }


def _clean_list(name: str, value) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"'{name}' must be a list of strings.")
    return [v.strip() for v in value if v.strip()]


def _clean_int(name: str, value) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"'{name}' must be a positive integer.")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{name}' must be a positive integer.")
    if number <= 0:
        raise ValidationError(f"'{name}' must be a positive integer.")
    return number


def _parse_id(name: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{name}' must be an integer.")


class ProjectService:
    """프로젝트 생성/수정/삭제와 참가 신청 및 승인 처리를 제공합니다."""

    def __init__(self, project_repo: IProjectRepository, participant_repo: IParticipantRepository,
                 auto_accept: bool = True):
        """
        ProjectService를 초기화합니다.

        Args:
            project_repo: 프로젝트 데이터에 접근하기 위한 리포지토리.
            participant_repo: 참가 기록에 접근하기 위한 리포지토리.
            auto_accept: True이면 참가 신청을 즉시 'accepted'로, 아니면 'applied'로 기록합니다.
        """
        self.project_repo = project_repo
        self.participant_repo = participant_repo
        self.auto_accept = auto_accept

    def _get_project(self, project_id: int) -> models.Project:
        project = self.project_repo.find_by_id(project_id)
        if not project:
            raise ProjectNotFoundError(f"Project with id '{project_id}' not found.")
        return project

    def _get_managed_project(self, actor: Dict[str, Any], project_id: int) -> models.Project:
        """소유자 또는 관리자만 접근할 수 있는 프로젝트를 조회합니다."""
        project = self._get_project(project_id)
        if project.owner_id != actor.get("id") and actor.get("role") != "admin":
            raise PermissionDeniedError(f"You do not have permission to manage project '{project_id}'.")
        return project

    def list_public_projects(self) -> List[Dict[str, Any]]:
        """모집 중(recruiting) 또는 진행 중(active)인 프로젝트를 최신순으로 조회합니다."""
        return [serialize_project(p) for p in self.project_repo.list_by_statuses(PUBLIC_STATUSES)]

    def create_project(self, owner_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        새로운 프로젝트를 'recruiting' 상태로 생성합니다.

        Raises:
            ValidationError: 제목, 설명, 카테고리가 없거나 필드 형식이 잘못되었을 때.
        """
        title, description, category = data.get("title"), data.get("description"), data.get("category")
        if not all(isinstance(v, str) and v.strip() for v in (title, description, category)):
            raise ValidationError("Title, description and category are required.")

        fields = {name: _clean_list(name, data.get(name)) for name in LIST_FIELDS}
        for name, default in PROJECT_DEFAULTS.items():
            value = data.get(name)
            fields[name] = default if value in (None, "") else _clean_int(name, value)

        new_project = models.Project(
            owner_id=owner_id,
            title=title,
            description=description,
            category=category,
            status="recruiting",
            **fields
        )
        created = self.project_repo.create(new_project)
        logger.info(f"Project {created.id} created by user {owner_id}.")
        return serialize_project(created)

    def update_project(self, actor: Dict[str, Any], project_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        프로젝트 정보를 수정합니다. 요청에 포함된 필드만 변경합니다.

        status는 상태 전이 규칙 없이 임의의 문자열로 설정할 수 있습니다.

        Raises:
            ProjectNotFoundError: 해당 ID의 프로젝트를 찾을 수 없을 때.
            PermissionDeniedError: 소유자나 관리자가 아닐 때.
            ValidationError: 필드 값이 비어 있거나 형식이 잘못되었을 때.
        """
        project = self._get_managed_project(actor, project_id)

        for name in TEXT_FIELDS:
            if name in data:
                value = data[name]
                if not isinstance(value, str) or not value.strip():
                    raise ValidationError(f"'{name}' must be a non-empty string.")
                setattr(project, name, value)
        for name in LIST_FIELDS:
            if name in data:
                setattr(project, name, _clean_list(name, data[name]))
        for name in INT_FIELDS:
            if name in data:
                setattr(project, name, _clean_int(name, data[name]))

        updated = self.project_repo.save(project)
        logger.info(f"Project {project_id} updated by user {actor.get('id')}.")
        return serialize_project(updated)

    def delete_project(self, actor: Dict[str, Any], project_id: int) -> bool:
        """
        프로젝트와 모든 참가 기록을 삭제합니다.

        Raises:
            ProjectNotFoundError: 해당 ID의 프로젝트를 찾을 수 없을 때.
            PermissionDeniedError: 소유자나 관리자가 아닐 때.
        """
        project = self._get_managed_project(actor, project_id)
        self.project_repo.delete(project)
        logger.info(f"Project {project_id} deleted by user {actor.get('id')}.")
        return True

    def apply(self, user_id: int, project_id, role_in_project: str, message: str = None) -> Dict[str, Any]:
        """
        프로젝트에 참가 신청합니다.

        중복 신청 여부는 저장소의 (project_id, user_id) 유니크 제약으로 판단하므로,
        동시에 들어온 신청 중 하나만 기록됩니다.

        Raises:
            ValidationError: 역할이 없거나, 프로젝트가 모집 중이 아닐 때.
            ProjectNotFoundError: 해당 ID의 프로젝트를 찾을 수 없을 때.
            DuplicateApplicationError: 이미 신청한 프로젝트일 때.
        """
        if project_id in (None, ""):
            raise ValidationError("Project id and role are required.")
        project_id = _parse_id("project_id", project_id)
        if not isinstance(role_in_project, str) or not role_in_project.strip():
            raise ValidationError("Role in project is required.")
        if message is not None and not isinstance(message, str):
            raise ValidationError("Message must be a string.")

        project = self._get_project(project_id)
        if project.status != "recruiting":
            raise ValidationError(f"Project '{project_id}' is not recruiting.")

        status = "accepted" if self.auto_accept else "applied"
        result = self.participant_repo.add(models.ProjectParticipant(
            project_id=project_id,
            user_id=user_id,
            status=status,
            role_in_project=role_in_project,
            message=message,
        ))
        if not result.created:
            raise DuplicateApplicationError(f"User '{user_id}' has already applied to project '{project_id}'.")

        logger.info(f"User {user_id} applied to project {project_id} (status={status}).")
        participant = result.participant
        return {
            "id": participant.id,
            "project_id": project_id,
            "status": participant.status,
            "role_in_project": participant.role_in_project,
        }

    def respond_to_application(self, actor: Dict[str, Any], project_id: int, application_id: int,
                               status: str, response_message: str = None) -> Dict[str, Any]:
        """
        참가 신청을 승인하거나 거절합니다.

        Raises:
            ValidationError: status가 'accepted' 또는 'rejected'가 아닐 때.
            ProjectNotFoundError: 해당 ID의 프로젝트를 찾을 수 없을 때.
            PermissionDeniedError: 소유자나 관리자가 아닐 때.
            ApplicationNotFoundError: 프로젝트에 해당 신청이 없을 때.
        """
        if status not in RESPONSE_STATUSES:
            raise ValidationError("Status must be either 'accepted' or 'rejected'.")
        if response_message is not None and not isinstance(response_message, str):
            raise ValidationError("Response message must be a string.")
        self._get_managed_project(actor, project_id)

        participant = self.participant_repo.find_in_project(application_id, project_id)
        if not participant:
            raise ApplicationNotFoundError(f"Application '{application_id}' not found in project '{project_id}'.")

        participant.status = status
        participant.response_message = response_message or ""
        self.participant_repo.save(participant)
        logger.info(f"Application {application_id} in project {project_id} marked as {status}.")
        return {"id": participant.id, "status": participant.status}

    def list_participants(self, project_id: int) -> List[Dict[str, Any]]:
        return [
            {
                "id": p.id,
                "status": p.status,
                "role_in_project": p.role_in_project,
                "joined_at": _isoformat(p.joined_at),
                "user_id": p.user.id,
                "user_name": p.user.name,
                "user_email": p.user.email,
            }
            for p in self.participant_repo.list_by_project(project_id)
        ]

    def list_owned_projects(self, user_id: int) -> List[Dict[str, Any]]:
        """사용자가 만든 프로젝트 목록을 현재 멤버 수와 대기 중인 신청 수와 함께 조회합니다."""
        projects = []
        for project in self.project_repo.list_by_owner(user_id):
            item = serialize_project(project)
            item["pending_applications"] = project.pending_applications
            projects.append(item)
        return projects

    def list_joined_projects(self, user_id: int) -> List[Dict[str, Any]]:
        """사용자가 승인되어 참가 중인 프로젝트 목록을 조회합니다."""
        projects = []
        for participation in self.participant_repo.list_accepted_by_user(user_id):
            item = serialize_project(participation.project)
            item["role_in_project"] = participation.role_in_project
            item["participation_status"] = participation.status
            item["joined_at"] = _isoformat(participation.joined_at)
            projects.append(item)
        return projects

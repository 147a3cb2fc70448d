import secrets
import string
from typing import Dict, Any, List, Optional

from src.database import models
from src.repositories.interfaces import IUserRepository
from src.services.exceptions import (
    UserNotFoundError, ValidationError, AuthenticationError, AccountSuspendedError
)
from src.services.session import normalize_roles
from src.utils.auth_utils import AuthUtils
from src.utils.catalogs import STRENGTHS_FINDER, SIXTEEN_TYPES, STRENGTHS_SELECTION_COUNT
from src.utils.logger import get_logger

logger = get_logger("identity_service")

VALID_ROLES = ("admin", "owner", "member")
VALID_STATUSES = ("active", "suspended")
MIN_PASSWORD_LENGTH = 8
MIN_NAME_LENGTH = 2
TEMP_PASSWORD_LENGTH = 8
INVALID_CREDENTIALS = "Invalid email or password."


def _require_strings(message: str, *values) -> None:
    if not all(isinstance(v, str) and v for v in values):
        raise ValidationError(message)


def _isoformat(value):
    return value.isoformat() if value is not None else None


def _user_summary(user: models.User) -> Dict[str, Any]:
    summary = {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "status": user.status,
    }
    summary["roles"] = normalize_roles(summary)
    return summary


def _profile(user: models.User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "status": user.status,
        "strengths_finder": user.strengths_finder or [],
        "sixteen_types": user.sixteen_types or None,
        "bio": user.bio or "",
        "skills": user.skills or [],
        "experience_years": user.experience_years or 0,
        "availability": user.availability or {},
        "created_at": _isoformat(user.created_at),
        "updated_at": _isoformat(user.updated_at),
    }


class IdentityService:
    """로그인, 회원가입, 사용자 관리, 프로필 관리 등 신원 관련 서비스를 제공합니다."""

    def __init__(self, user_repo: IUserRepository, auth_utils: AuthUtils, allow_plaintext_passwords: bool = False):
        """
        IdentityService를 초기화합니다.

        Args:
            user_repo: 사용자 데이터에 접근하기 위한 리포지토리.
            auth_utils: 비밀번호 해시와 토큰 발급을 담당하는 유틸리티.
            allow_plaintext_passwords: salt가 없는 사용자 행에 대해 평문 비교를 허용할지 여부.
        """
        self.user_repo = user_repo
        self.auth_utils = auth_utils
        self.allow_plaintext_passwords = allow_plaintext_passwords

    # ----------------------------------------------------------------------
    # 내부 유틸리티
    # ----------------------------------------------------------------------

    def _get_user(self, user_id: int) -> models.User:
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return user

    def _issue_token(self, user: models.User) -> str:
        return self.auth_utils.generate_token({
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": user.role,
        })

    def _check_password(self, user: models.User, password: str) -> bool:
        if user.password_salt:
            return self.auth_utils.verify_password(password, user.password_hash, user.password_salt)
        if self.allow_plaintext_passwords:
            logger.warning(f"Plaintext password comparison used for user {user.id}.")
            return password == user.password_hash
        return False

    def _validate_new_password(self, password: Optional[str]):
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    def _ensure_email_available(self, email: str, exclude_user_id: Optional[int] = None):
        existing = self.user_repo.find_by_email(email)
        if existing and existing.id != exclude_user_id:
            raise ValidationError(f"Email '{email}' is already registered.")

    def _new_user(self, email: str, password: str, name: str, role: str) -> models.User:
        hashed = self.auth_utils.hash_password(password)
        return models.User(
            email=email,
            name=name,
            password_hash=hashed["hash"],
            password_salt=hashed["salt"],
            role=role,
            status="active",
        )

    # ----------------------------------------------------------------------
    # 인증
    # ----------------------------------------------------------------------

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        자격증명을 검증하고, 성공 시 24시간 유효한 토큰을 발급합니다.

        Returns:
            'token'과 'user'(roles 포함)를 담은 딕셔너리.

        Raises:
            ValidationError: 이메일 또는 비밀번호가 없을 때.
            AuthenticationError: 사용자가 없거나 비밀번호가 틀렸을 때.
            AccountSuspendedError: 정지된 계정일 때.
        """
        _require_strings("Email and password are required.", email, password)

        user = self.user_repo.find_by_email(email)
        if not user:
            raise AuthenticationError(INVALID_CREDENTIALS)
        if user.status == "suspended":
            raise AccountSuspendedError("This account has been suspended.")
        if not self._check_password(user, password):
            logger.warning(f"Failed login attempt for user {user.id}.")
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info(f"User {user.id} logged in.")
        return {"token": self._issue_token(user), "user": _user_summary(user)}

    def signup(self, email: str, password: str, name: str) -> Dict[str, Any]:
        """
        일반 사용자(member)로 회원가입하고, 바로 로그인된 토큰을 발급합니다.

        Raises:
            ValidationError: 필수 값 누락, 짧은 비밀번호, 중복 이메일일 때.
        """
        _require_strings("Email, password and name are required.", email, password, name)
        self._validate_new_password(password)
        self._ensure_email_available(email)

        created = self.user_repo.create(self._new_user(email, password, name, "member"))
        logger.info(f"User {created.id} signed up.")
        return {"token": self._issue_token(created), "user": _user_summary(created)}

    def get_current_user(self, user_id: int) -> Dict[str, Any]:
        """
        토큰의 사용자 ID로 최신 사용자 정보를 조회합니다.

        Raises:
            AuthenticationError: 사용자가 없거나 정지되었을 때.
        """
        user = self.user_repo.find_by_id(user_id)
        if not user or user.status == "suspended":
            raise AuthenticationError("Authentication is no longer valid.")
        return _user_summary(user)

    # ----------------------------------------------------------------------
    # 사용자 관리 (관리자)
    # ----------------------------------------------------------------------

    def create_user(self, email: str, password: str, name: str, role: str = "member") -> Dict[str, Any]:
        """
        관리자가 새 사용자를 생성합니다. 비밀번호는 항상 salt와 함께 해시하여 저장합니다.

        Raises:
            ValidationError: 필수 값 누락, 잘못된 역할, 짧은 비밀번호, 중복 이메일일 때.
        """
        _require_strings("Email, password and name are required.", email, password, name)
        if not isinstance(role, str) or role not in VALID_ROLES:
            raise ValidationError(f"Invalid role '{role}'.")
        self._validate_new_password(password)
        self._ensure_email_available(email)

        created = self.user_repo.create(self._new_user(email, password, name, role))
        logger.info(f"User {created.id} created with role '{role}'.")
        return _user_summary(created)

    def list_users(self) -> List[Dict[str, Any]]:
        """모든 사용자의 목록을 참가/소유 프로젝트 수와 함께 조회합니다. (비밀번호 제외)"""
        users = []
        for user in self.user_repo.list_all():
            users.append({
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "roles": normalize_roles({"role": user.role}),
                "joinedProjects": sum(1 for p in user.participations if p.status == "accepted"),
                "ownedProjects": len(user.owned_projects),
                "status": user.status,
                "createdAt": _isoformat(user.created_at),
            })
        return users

    def update_user(self, target_user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        관리자가 사용자의 이메일, 이름, 역할, 상태, (선택) 비밀번호를 수정합니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
            ValidationError: 잘못된 역할/상태, 중복 이메일, 짧은 비밀번호일 때.
        """
        user = self._get_user(target_user_id)

        if "email" in data:
            _require_strings("Email must be a non-empty string.", data["email"])
            self._ensure_email_available(data["email"], exclude_user_id=user.id)
            user.email = data["email"]
        if "name" in data:
            _require_strings("Name must be a non-empty string.", data["name"])
            user.name = data["name"]
        if "role" in data:
            if data["role"] not in VALID_ROLES:
                raise ValidationError(f"Invalid role '{data['role']}'.")
            user.role = data["role"]
        if "status" in data:
            if data["status"] not in VALID_STATUSES:
                raise ValidationError(f"Invalid status '{data['status']}'.")
            user.status = data["status"]
        if data.get("password"):
            self._validate_new_password(data["password"])
            hashed = self.auth_utils.hash_password(data["password"])
            user.password_hash, user.password_salt = hashed["hash"], hashed["salt"]

        updated = self.user_repo.save(user)
        logger.info(f"User {target_user_id} updated.")
        return _user_summary(updated)

    def change_password(self, target_user_id: int, password: str) -> Dict[str, Any]:
        """
        관리자가 사용자의 비밀번호를 변경합니다.

        Raises:
            ValidationError: 비밀번호가 8자 미만일 때.
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        self._validate_new_password(password)
        user = self._get_user(target_user_id)

        hashed = self.auth_utils.hash_password(password)
        user.password_hash, user.password_salt = hashed["hash"], hashed["salt"]
        self.user_repo.save(user)
        logger.info(f"Password changed for user {target_user_id}.")
        return {"id": user.id, "name": user.name}

    def reset_password(self, target_user_id: int) -> Dict[str, Any]:
        """
        8자리 영숫자 임시 비밀번호를 생성하여 사용자의 비밀번호를 재설정합니다.

        Returns:
            임시 비밀번호와 사용자 이메일을 담은 딕셔너리.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        user = self._get_user(target_user_id)

        alphabet = string.ascii_lowercase + string.digits
        temp_password = "".join(secrets.choice(alphabet) for _ in range(TEMP_PASSWORD_LENGTH))
        hashed = self.auth_utils.hash_password(temp_password)
        user.password_hash, user.password_salt = hashed["hash"], hashed["salt"]
        self.user_repo.save(user)
        logger.info(f"Password reset for user {target_user_id}.")
        return {"name": user.name, "tempPassword": temp_password, "userEmail": user.email}

    def delete_user(self, actor_user_id: int, target_user_id: int) -> bool:
        """
        사용자를 삭제합니다. 참가 기록은 함께 삭제되고 소유 프로젝트는 소유자 없음으로 남습니다.

        Raises:
            ValidationError: 자기 자신을 삭제하려고 할 때.
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        if actor_user_id == target_user_id:
            raise ValidationError("You cannot delete your own account.")
        user = self._get_user(target_user_id)
        self.user_repo.delete(user)
        logger.info(f"User {target_user_id} deleted by user {actor_user_id}.")
        return True

    # ----------------------------------------------------------------------
    # 프로필
    # ----------------------------------------------------------------------

    def get_profile(self, user_id: int) -> Dict[str, Any]:
        """
        사용자 프로필을 조회합니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        return _profile(self._get_user(user_id))

    def update_profile(self, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        본인 프로필을 수정합니다.

        Raises:
            ValidationError: 이름이 2자 미만이거나, 資質이 카탈로그의 서로 다른 5개가 아니거나,
                16타입/스킬/경력/가용 시간 형식이 잘못되었을 때.
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        name = data.get("name")
        if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
            raise ValidationError(f"Name must be at least {MIN_NAME_LENGTH} characters.")

        strengths = data.get("strengths_finder")
        if strengths:
            if (not isinstance(strengths, list) or not all(isinstance(s, str) for s in strengths)
                    or len(strengths) != STRENGTHS_SELECTION_COUNT
                    or len(set(strengths)) != STRENGTHS_SELECTION_COUNT
                    or any(s not in STRENGTHS_FINDER for s in strengths)):
                raise ValidationError(
                    f"Select exactly {STRENGTHS_SELECTION_COUNT} distinct StrengthsFinder traits."
                )

        sixteen_types = data.get("sixteen_types")
        if sixteen_types:
            type_code = sixteen_types.get("type") if isinstance(sixteen_types, dict) else None
            if not isinstance(type_code, str) or type_code not in SIXTEEN_TYPES:
                raise ValidationError("Invalid personality type.")
            sixteen_types = {"type": type_code, "name": SIXTEEN_TYPES[type_code]}

        skills = data.get("skills")
        if skills and (not isinstance(skills, list) or not all(isinstance(s, str) for s in skills)):
            raise ValidationError("Skills must be a list of strings.")

        experience_years = data.get("experience_years") or 0
        if isinstance(experience_years, bool) or not isinstance(experience_years, int) or experience_years < 0:
            raise ValidationError("Experience years must be a non-negative integer.")

        availability = data.get("availability")
        if availability and not isinstance(availability, dict):
            raise ValidationError("Availability must be an object.")

        bio = data.get("bio") or ""
        if not isinstance(bio, str):
            raise ValidationError("Bio must be a string.")

        user = self._get_user(user_id)
        user.name = name.strip()
        user.bio = bio
        user.strengths_finder = strengths or None
        user.sixteen_types = sixteen_types or None
        user.skills = list(dict.fromkeys(s.strip() for s in skills if s.strip())) if skills else None
        user.experience_years = experience_years
        user.availability = availability or None

        updated = self.user_repo.save(user)
        logger.info(f"Profile updated for user {user_id}.")
        return _profile(updated)

from typing import Any, Dict, List, Optional

from src.services.exceptions import TokenInvalidError, PermissionDeniedError
from src.utils.auth_utils import AuthUtils

BEARER_PREFIX = "Bearer "


def normalize_roles(user: Dict[str, Any]) -> List[str]:
    """단일 role 문자열 또는 roles 리스트를 roles 리스트로 정규화합니다."""
    roles = user.get("roles")
    if isinstance(roles, list):
        return [r for r in roles if isinstance(r, str)]
    role = user.get("role")
    return [role] if isinstance(role, str) and role else []


class AuthSession:
    """
    요청 하나의 수명 동안 유지되는 인증 세션.

    Authorization 헤더의 Bearer 토큰을 검증한 결과(payload)를 담습니다.
    헤더가 없거나 토큰 검증에 실패하면 익명 세션이 되며, 실패 원인은 보관했다가
    인증이 필요한 작업(require_user/require_role)에서 그대로 발생시킵니다.
    요청 처리가 끝나면 end()로 세션을 종료해야 합니다.
    """

    def __init__(self, user: Optional[Dict[str, Any]] = None, error: Optional[TokenInvalidError] = None):
        self._user = user
        self._error = error
        self._active = True

    @classmethod
    def start(cls, authorization: Optional[str], auth_utils: AuthUtils) -> "AuthSession":
        """Authorization 헤더 값으로 세션을 시작합니다."""
        if not authorization:
            return cls()
        if not authorization.startswith(BEARER_PREFIX):
            return cls(error=TokenInvalidError("Authorization header missing or invalid"))
        try:
            payload = auth_utils.verify_token(authorization[len(BEARER_PREFIX):].strip())
        except TokenInvalidError as e:
            return cls(error=e)
        return cls(payload)

    def end(self):
        self._user = None
        self._error = None
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def error(self) -> Optional[TokenInvalidError]:
        return self._error

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._user

    @property
    def user_id(self) -> Optional[int]:
        return self._user.get("id") if self._user else None

    @property
    def role(self) -> Optional[str]:
        return self._user.get("role") if self._user else None

    @property
    def roles(self) -> List[str]:
        return normalize_roles(self._user) if self._user else []

    def require_user(self) -> Dict[str, Any]:
        """
        인증된 사용자 payload를 반환합니다.

        Raises:
            TokenInvalidError: 세션이 종료되었거나 토큰이 없을 때. 토큰 검증에 실패했다면
                그 원인 예외(TokenFormatError 등)를 그대로 발생시킵니다.
        """
        if not self._active:
            raise TokenInvalidError("Session has already ended.")
        if self._error is not None:
            raise self._error
        if not self._user:
            raise TokenInvalidError("Authorization header missing or invalid")
        return self._user

    def require_role(self, *roles: str) -> Dict[str, Any]:
        user = self.require_user()
        if not set(roles) & set(self.roles):
            raise PermissionDeniedError(f"This action requires one of the roles: {', '.join(roles)}.")
        return user

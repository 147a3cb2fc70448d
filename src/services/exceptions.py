# src/services/exceptions.py
from enum import Enum

# --- Not Found Exceptions ---
class NotFoundError(Exception):
    """참조한 엔티티를 찾을 수 없을 때"""
    pass

class UserNotFoundError(NotFoundError):
    """사용자를 찾을 수 없을 때"""
    pass

class ProjectNotFoundError(NotFoundError):
    """프로젝트를 찾을 수 없을 때"""
    pass

class ApplicationNotFoundError(NotFoundError):
    """참가 신청을 찾을 수 없을 때"""
    pass

# --- Validation Exceptions ---
class ValidationError(Exception):
    """요청 데이터가 사전 조건을 만족하지 않을 때"""
    pass

class DuplicateApplicationError(Exception):
    """같은 프로젝트에 이미 참가 신청한 사용자가 다시 신청할 때"""
    pass

# --- Auth Exceptions ---
class TokenErrorKind(str, Enum):
    FORMAT = "format"
    SIGNATURE = "signature"
    EXPIRED = "expired"
    MISSING = "missing"

class TokenInvalidError(Exception):
    """토큰이 유효하지 않거나 없을 때"""
    kind = TokenErrorKind.MISSING

class TokenFormatError(TokenInvalidError):
    """토큰이 세 개의 구간으로 나뉘지 않거나 디코딩할 수 없을 때"""
    kind = TokenErrorKind.FORMAT

class TokenSignatureError(TokenInvalidError):
    """서명이 재계산한 값과 일치하지 않을 때 (위조/변조)"""
    kind = TokenErrorKind.SIGNATURE

class TokenExpiredError(TokenInvalidError):
    """토큰 만료 시각이 지났을 때"""
    kind = TokenErrorKind.EXPIRED

class AuthenticationError(Exception):
    """사용자 자격 증명 실패 시"""
    pass

class AccountSuspendedError(Exception):
    """정지된 계정으로 로그인하려고 할 때"""
    pass

class PermissionDeniedError(Exception):
    """인증은 되었지만 해당 작업 권한이 없을 때"""
    pass

# src/utils/auth_utils.py
import base64
import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Dict, Optional

from src.services.exceptions import TokenFormatError, TokenSignatureError, TokenExpiredError

TOKEN_ALGORITHM = "HS256"
TOKEN_LIFETIME_SECONDS = 24 * 60 * 60  # 24시간
SALT_BYTES = 16


def base64url_encode(data) -> str:
    """문자열(UTF-8) 또는 바이트를 패딩 없는 base64url 문자열로 인코딩합니다."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64url_decode(segment: str) -> bytes:
    """패딩이 제거된 base64url 문자열을 바이트로 디코딩합니다."""
    padded = segment + "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _to_json(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


class AuthUtils:
    """
    비밀번호 해시와 HMAC 서명 토큰 발급/검증을 담당합니다.

    서버 비밀키 외에는 상태를 갖지 않습니다.
    """

    def __init__(self, secret: str):
        self.secret = secret

    def hash_password(self, password: str, salt: Optional[str] = None) -> Dict[str, str]:
        """
        SHA-256(password + salt)로 비밀번호 해시를 계산합니다.

        반복(stretching) 없이 한 번만 해시합니다. 기존 저장 데이터와의 호환을 위해
        이 방식을 그대로 유지합니다.

        Args:
            password: 평문 비밀번호.
            salt: 16진수 salt 문자열. 없으면 16바이트 난수로 새로 생성합니다.

        Returns:
            'hash'와 'salt'를 담은 딕셔너리 (둘 다 16진수 문자열).
        """
        if not salt:
            salt = secrets.token_hex(SALT_BYTES)
        digest = hashlib.sha256((password + salt).encode("utf-8")).hexdigest()
        return {"hash": digest, "salt": salt}

    def verify_password(self, password: str, stored_hash: str, salt: str) -> bool:
        return self.hash_password(password, salt)["hash"] == stored_hash

    def generate_token(self, payload: Dict[str, Any]) -> str:
        """
        payload에 iat/exp를 추가하여 서명된 토큰을 발급합니다.

        유효 기간은 발급 시점부터 24시간으로 고정입니다.
        """
        header = {"alg": TOKEN_ALGORITHM, "typ": "JWT"}
        now = int(time.time())
        token_payload = dict(payload)
        token_payload["iat"] = now
        token_payload["exp"] = now + TOKEN_LIFETIME_SECONDS

        header_b64 = base64url_encode(_to_json(header))
        payload_b64 = base64url_encode(_to_json(token_payload))
        signature = self.sign(f"{header_b64}.{payload_b64}")
        return f"{header_b64}.{payload_b64}.{signature}"

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        토큰의 형식, 서명, 만료 시각을 순서대로 검증하고 payload를 반환합니다.

        Raises:
            TokenFormatError: 세 개의 비어 있지 않은 구간으로 나뉘지 않거나 payload를 해석할 수 없을 때.
            TokenSignatureError: 서명이 일치하지 않을 때.
            TokenExpiredError: exp가 현재 시각보다 이전일 때.
        """
        parts = token.split(".") if isinstance(token, str) else []
        if len(parts) != 3 or not all(parts):
            raise TokenFormatError("Token verification failed: Invalid token format")
        header_b64, payload_b64, signature = parts

        expected_signature = self.sign(f"{header_b64}.{payload_b64}")
        if not hmac.compare_digest(signature.encode("ascii", "replace"), expected_signature.encode("ascii")):
            raise TokenSignatureError("Token verification failed: Invalid signature")

        try:
            payload = json.loads(base64url_decode(payload_b64).decode("utf-8"))
        except (ValueError, UnicodeDecodeError):
            raise TokenFormatError("Token verification failed: Invalid token payload")
        if not isinstance(payload, dict):
            raise TokenFormatError("Token verification failed: Invalid token payload")

        exp = payload.get("exp")
        if exp is not None and (isinstance(exp, bool) or not isinstance(exp, (int, float))):
            raise TokenFormatError("Token verification failed: Invalid token payload")
        # exp가 없는 payload는 만료 검사 없이 통과
        if exp is not None and exp < int(time.time()):
            raise TokenExpiredError("Token verification failed: Token expired")
        return payload

    def sign(self, data: str) -> str:
        """HMAC-SHA256 서명을 base64url 문자열로 반환합니다."""
        mac = hmac.new(self.secret.encode("utf-8"), data.encode("utf-8"), hashlib.sha256)
        return base64url_encode(mac.digest())

# src/config.py
import os
from dotenv import load_dotenv

# 로컬 개발 환경에서만 .env 파일을 읽습니다.
if os.getenv("APP_ENV") != "production":
    load_dotenv()

DEV_JWT_SECRET = "dev-secret-key"


def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """환경 변수 기반 애플리케이션 설정."""

    APP_ENV = os.getenv("APP_ENV", "development")

    # 토큰 서명용 비밀키. 없으면 개발용 고정 키를 사용합니다 (운영 환경에서 사용 금지).
    JWT_SECRET = os.getenv("JWT_SECRET") or DEV_JWT_SECRET

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///matching_metadata.db")

    # salt 없는 사용자 행에 대해 평문 비교를 허용할지 여부 (개발 데이터 호환용)
    ALLOW_PLAINTEXT_PASSWORDS = _as_bool(os.getenv("ALLOW_PLAINTEXT_PASSWORDS"), False)

    # 참가 신청을 즉시 승인(accepted)으로 기록할지 여부
    AUTO_ACCEPT_APPLICATIONS = _as_bool(os.getenv("AUTO_ACCEPT_APPLICATIONS"), True)

    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin1234")

    CORS_ORIGIN = os.getenv("CORS_ORIGIN", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    PORT = int(os.getenv("PORT", "8000"))

    @classmethod
    def uses_dev_secret(cls) -> bool:
        return cls.JWT_SECRET == DEV_JWT_SECRET

# src/utils/logger.py
import logging
import sys

from src.config import Config

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ROOT_NAME = "matching"
_configured = False


def configure_logging(level: str = None) -> logging.Logger:
    """
    애플리케이션 루트 로거에 콘솔 핸들러를 한 번만 설정합니다.

    Args:
        level: 로그 레벨 이름 (기본값: Config.LOG_LEVEL).

    Returns:
        설정된 루트 로거.
    """
    global _configured
    root = logging.getLogger(_ROOT_NAME)
    root.setLevel(getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO))

    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
        root.propagate = False
        _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """'matching.<name>' 형태의 하위 로거를 반환합니다."""
    configure_logging()
    return logging.getLogger(f"{_ROOT_NAME}.{name}")

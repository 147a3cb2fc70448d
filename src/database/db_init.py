from src.config import Config
from src.utils.auth_utils import AuthUtils
from src.utils.logger import get_logger
from .database import engine, SessionLocal, Base
from .models import *

logger = get_logger("db_init")

DEFAULT_ADMIN_EMAIL = "admin@example.com"

def initialize_db():
    """
    DB와 테이블을 생성하고, 사용자가 없으면 기본 관리자 계정을 삽입합니다.
    SQLAlchemy 모델을 사용하여 모든 작업을 수행합니다.
    """
    logger.info("Initializing database...")

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created.")

    db = SessionLocal()
    try:
        # 기본 데이터가 이미 있는지 확인
        if db.query(User).first():
            logger.info("Seed data already exists. Skipping.")
            return

        hashed = AuthUtils(Config.JWT_SECRET).hash_password(Config.ADMIN_PASSWORD)
        admin_user = User(
            email=DEFAULT_ADMIN_EMAIL,
            name="Administrator",
            password_hash=hashed["hash"],
            password_salt=hashed["salt"],
            role="admin",
            status="active",
        )
        db.add(admin_user)
        db.commit()
        logger.info(f"Default admin '{DEFAULT_ADMIN_EMAIL}' created.")

    except Exception:
        logger.exception("Database initialization failed.")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == '__main__':
    initialize_db()

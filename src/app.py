# src/app.py
from wsgiref.simple_server import make_server
from datetime import datetime, timezone
from urllib.parse import parse_qs
import json
import sys
import re

# SQLAlchemy 및 의존성 임포트
from src.config import Config
from src.database.database import SessionLocal
from src.repositories.sqlalchemy.sqlalchemy_user_repository import SqlalchemyUserRepository
from src.repositories.sqlalchemy.sqlalchemy_project_repository import SqlalchemyProjectRepository
from src.repositories.sqlalchemy.sqlalchemy_participant_repository import SqlalchemyParticipantRepository
from src.services.identity_service import IdentityService
from src.services.project_service import ProjectService
from src.services.match_service import MatchService
from src.services.session import AuthSession
from src.services.exceptions import *
from src.utils.auth_utils import AuthUtils
from src.utils.logger import get_logger

logger = get_logger("app")

if Config.uses_dev_secret():
    logger.warning("JWT_SECRET is not set. Using the development fallback secret; do not run like this in production.")

auth_utils = AuthUtils(Config.JWT_SECRET)

CORS_HEADERS = [
    ("Access-Control-Allow-Origin", Config.CORS_ORIGIN),
    ("Access-Control-Allow-Methods", "GET, POST, PUT, DELETE, OPTIONS"),
    ("Access-Control-Allow-Headers", "Content-Type, Authorization"),
]

# --------------------------------------------------------------------------
## 요청/응답 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        data = json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise ValidationError("Invalid or missing JSON body.")
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object.")
    return data

def get_query_params(environ):
    query = parse_qs(environ.get("QUERY_STRING", ""))
    return {key: values[-1] for key, values in query.items()}

def success(status, **data):
    return status, {"success": True, "data": data}

def error_body(code, message):
    return {"success": False, "error": {"code": code, "message": message}}

def handle_exception(e):
    error_map = [
        (TokenInvalidError, "401 Unauthorized", "AUTH_ERROR"),
        (AuthenticationError, "401 Unauthorized", "AUTH_ERROR"),
        (AccountSuspendedError, "403 Forbidden", "ACCOUNT_SUSPENDED"),
        (PermissionDeniedError, "403 Forbidden", "FORBIDDEN"),
        (NotFoundError, "404 Not Found", "NOT_FOUND"),
        (ValidationError, "400 Bad Request", "VALIDATION_ERROR"),
        (DuplicateApplicationError, "409 Conflict", "CONFLICT"),
    ]
    for exc_type, status, code in error_map:
        if isinstance(e, exc_type):
            if status.startswith(("401", "403")):
                logger.warning(f"{code}: {e}")
            return status, error_body(code, str(e))

    logger.exception("Unhandled error while processing request")
    return "500 Internal Server Error", error_body("INTERNAL_ERROR", "An internal server error occurred.")

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

def application(environ, start_response):
    path = environ.get("PATH_INFO", "")
    method = environ.get("REQUEST_METHOD", "")

    # CORS 프리플라이트
    if method == "OPTIONS":
        start_response("200 OK", list(CORS_HEADERS))
        return [b""]

    logger.info(f"{method} {path}")
    db_session = SessionLocal()
    session = None
    try:
        # 1. 의존성 생성 (Repositories -> Services)
        user_repo = SqlalchemyUserRepository(db_session)
        project_repo = SqlalchemyProjectRepository(db_session)
        participant_repo = SqlalchemyParticipantRepository(db_session)

        identity_service = IdentityService(user_repo, auth_utils, Config.ALLOW_PLAINTEXT_PASSWORDS)
        project_service = ProjectService(project_repo, participant_repo, Config.AUTO_ACCEPT_APPLICATIONS)
        match_service = MatchService(project_repo, user_repo)

        # 2. 생성된 서비스 객체들과 요청 단위 인증 세션을 environ을 통해 핸들러에 전달
        environ['services'] = {
            'identity': identity_service,
            'project': project_service,
            'match': match_service,
        }
        session = AuthSession.start(environ.get("HTTP_AUTHORIZATION"), auth_utils)
        environ['session'] = session

        # 3. 라우팅 및 핸들러 실행 (구체적인 경로를 먼저 검사)
        handler, path_args = None, []
        for route_method, pattern, route_handler in ROUTES:
            if method == route_method and (match := re.match(pattern, path)):
                handler, path_args = route_handler, match.groups()
                break

        if handler:
            status, response_body = handler(environ, *path_args)
        else:
            status, response_body = '404 Not Found', error_body("NOT_FOUND", f"Endpoint {method} {path} not found.")

    except Exception as e:
        db_session.rollback()
        status, response_body = handle_exception(e)
    finally:
        if session is not None:
            session.end()
        db_session.close()

    start_response(status, [("Content-Type", "application/json; charset=utf-8")] + CORS_HEADERS)
    return [json.dumps(response_body, ensure_ascii=False).encode("utf-8")]

# --------------------------------------------------------------------------
## 핸들러 함수
# --------------------------------------------------------------------------

def health_handler(environ, *args):
    return '200 OK', {
        "success": True,
        "message": "API is healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

def login_handler(environ, *args):
    data = get_request_data(environ)
    result = environ['services']['identity'].login(data.get('email'), data.get('password'))
    return success('200 OK', **result)

def me_handler(environ, *args):
    user = environ['session'].require_user()
    current = environ['services']['identity'].get_current_user(user['id'])
    return success('200 OK', user=current)

def signup_handler(environ, *args):
    data = get_request_data(environ)
    result = environ['services']['identity'].signup(data.get('email'), data.get('password'), data.get('name'))
    return success('201 Created', **result)

def create_user_handler(environ, *args):
    environ['session'].require_role('admin')
    data = get_request_data(environ)
    user = environ['services']['identity'].create_user(
        data.get('email'), data.get('password'), data.get('name'), data.get('role') or 'member'
    )
    return success('201 Created', user=user)

def get_profile_handler(environ, *args):
    user = environ['session'].require_user()
    profile = environ['services']['identity'].get_profile(user['id'])
    return success('200 OK', profile=profile)

def update_profile_handler(environ, *args):
    user = environ['session'].require_user()
    data = get_request_data(environ)
    profile = environ['services']['identity'].update_profile(user['id'], data)
    return success('200 OK', profile=profile, message="Profile updated.")

def list_users_handler(environ, *args):
    environ['session'].require_role('admin')
    users = environ['services']['identity'].list_users()
    return success('200 OK', users=users)

def update_user_handler(environ, user_id):
    environ['session'].require_role('admin')
    data = get_request_data(environ)
    user = environ['services']['identity'].update_user(int(user_id), data)
    return success('200 OK', user=user, message="User updated.")

def change_password_handler(environ, user_id):
    environ['session'].require_role('admin')
    data = get_request_data(environ)
    user = environ['services']['identity'].change_password(int(user_id), data.get('password'))
    return success('200 OK', message=f"Password changed for {user['name']}.")

def reset_password_handler(environ, user_id):
    environ['session'].require_role('admin')
    result = environ['services']['identity'].reset_password(int(user_id))
    return success('200 OK', message=f"Password reset for {result['name']}.",
                   tempPassword=result['tempPassword'], userEmail=result['userEmail'])

def delete_user_handler(environ, user_id):
    actor = environ['session'].require_role('admin')
    environ['services']['identity'].delete_user(actor['id'], int(user_id))
    return success('200 OK', message="User deleted.")

def list_projects_handler(environ, *args):
    projects = environ['services']['project'].list_public_projects()
    return success('200 OK', projects=projects)

def project_board_handler(environ, *args):
    params = get_query_params(environ)
    projects = environ['services']['match'].build_board(
        user_id=environ['session'].user_id,
        search=params.get('search', ''),
        category=params.get('category', 'all'),
        sort_by_score=params.get('sort') == 'match',
    )
    return success('200 OK', projects=projects)

def my_owned_projects_handler(environ, *args):
    user = environ['session'].require_user()
    projects = environ['services']['project'].list_owned_projects(user['id'])
    return success('200 OK', projects=projects)

def my_joined_projects_handler(environ, *args):
    user = environ['session'].require_user()
    projects = environ['services']['project'].list_joined_projects(user['id'])
    return success('200 OK', projects=projects)

def create_project_handler(environ, *args):
    user = environ['session'].require_user()
    data = get_request_data(environ)
    project = environ['services']['project'].create_project(user['id'], data)
    return success('201 Created', project=project)

def update_project_handler(environ, project_id):
    user = environ['session'].require_user()
    data = get_request_data(environ)
    project = environ['services']['project'].update_project(user, int(project_id), data)
    return success('200 OK', project=project, message="Project updated.")

def delete_project_handler(environ, project_id):
    user = environ['session'].require_user()
    environ['services']['project'].delete_project(user, int(project_id))
    return success('200 OK', message="Project deleted.")

def _apply_message(participation):
    if participation["status"] == "accepted":
        return "Joined the project."
    return "Application submitted."

def apply_handler(environ, project_id):
    user = environ['session'].require_user()
    data = get_request_data(environ)
    participation = environ['services']['project'].apply(
        user['id'], int(project_id), data.get('role_in_project'), data.get('message')
    )
    return success('201 Created', application=participation, message=_apply_message(participation))

def create_application_handler(environ, *args):
    user = environ['session'].require_user()
    data = get_request_data(environ)
    participation = environ['services']['project'].apply(
        user['id'], data.get('project_id'), data.get('role_in_project'), data.get('message')
    )
    return success('201 Created', application=participation, message=_apply_message(participation))

def respond_application_handler(environ, project_id, application_id):
    user = environ['session'].require_user()
    data = get_request_data(environ)
    result = environ['services']['project'].respond_to_application(
        user, int(project_id), int(application_id), data.get('status'), data.get('response_message')
    )
    return success('200 OK', application=result)

def list_participants_handler(environ, project_id):
    environ['session'].require_user()
    participants = environ['services']['project'].list_participants(int(project_id))
    return success('200 OK', participants=participants)

ROUTES = [
    ('GET', r'^/api/health$', health_handler),
    ('POST', r'^/api/auth/login$', login_handler),
    ('GET', r'^/api/auth/me$', me_handler),
    ('POST', r'^/api/auth/signup$', signup_handler),
    ('POST', r'^/api/auth/register$', create_user_handler),
    ('GET', r'^/api/users/profile$', get_profile_handler),
    ('PUT', r'^/api/users/profile$', update_profile_handler),
    ('GET', r'^/api/users$', list_users_handler),
    ('POST', r'^/api/users$', create_user_handler),
    ('PUT', r'^/api/users/([0-9]+)/password$', change_password_handler),
    ('POST', r'^/api/users/([0-9]+)/reset-password$', reset_password_handler),
    ('PUT', r'^/api/users/([0-9]+)$', update_user_handler),
    ('DELETE', r'^/api/users/([0-9]+)$', delete_user_handler),
    ('GET', r'^/api/projects$', list_projects_handler),
    ('GET', r'^/api/projects/board$', project_board_handler),
    ('GET', r'^/api/projects/my-owned$', my_owned_projects_handler),
    ('GET', r'^/api/projects/my-joined$', my_joined_projects_handler),
    ('POST', r'^/api/projects$', create_project_handler),
    ('PUT', r'^/api/projects/([0-9]+)$', update_project_handler),
    ('DELETE', r'^/api/projects/([0-9]+)$', delete_project_handler),
    ('POST', r'^/api/projects/([0-9]+)/apply$', apply_handler),
    ('GET', r'^/api/projects/([0-9]+)/participants$', list_participants_handler),
    ('PUT', r'^/api/projects/([0-9]+)/applications/([0-9]+)$', respond_application_handler),
    ('POST', r'^/api/applications$', create_application_handler),
]

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

if __name__ == "__main__":
    from src.database.db_init import initialize_db
    initialize_db()
    try:
        with make_server("", Config.PORT, application) as httpd:
            logger.info(f"Serving project matching API on port {Config.PORT}...")
            httpd.serve_forever()
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)

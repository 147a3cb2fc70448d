# tests/test_app.py
import io
import json
import pytest
from unittest.mock import patch
from wsgiref.util import setup_testing_defaults

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src import app as app_module
from src.database.database import Base
from src.database import models

PASSWORD = "password123"

# ===================================================================
#  Fixture 설정 (인메모리 SQLite + WSGI 호출 헬퍼)
# ===================================================================

@pytest.fixture
def db_factory():
    """테스트마다 새 인메모리 DB를 만들고 앱의 SessionLocal을 교체합니다."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    with patch.object(app_module, "SessionLocal", factory), \
            patch.object(app_module.Config, "AUTO_ACCEPT_APPLICATIONS", True), \
            patch.object(app_module.Config, "ALLOW_PLAINTEXT_PASSWORDS", False):
        yield factory
    engine.dispose()

@pytest.fixture
def seed_user(db_factory):
    def _seed(email, role="member", status="active", **profile):
        hashed = app_module.auth_utils.hash_password(PASSWORD)
        db = db_factory()
        try:
            user = models.User(email=email, name=email.split("@")[0], password_hash=hashed["hash"],
                               password_salt=hashed["salt"], role=role, status=status, **profile)
            db.add(user)
            db.commit()
            return user.id
        finally:
            db.close()
    return _seed

def call(method, path, body=None, token=None, query="", raw=None):
    environ = {}
    setup_testing_defaults(environ)
    payload = raw if raw is not None else (json.dumps(body).encode("utf-8") if body is not None else b"")
    environ.update({
        "REQUEST_METHOD": method,
        "PATH_INFO": path,
        "QUERY_STRING": query,
        "CONTENT_LENGTH": str(len(payload)),
        "wsgi.input": io.BytesIO(payload),
    })
    if token:
        environ["HTTP_AUTHORIZATION"] = f"Bearer {token}"

    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body_bytes = b"".join(app_module.application(environ, start_response))
    return captured["status"], json.loads(body_bytes) if body_bytes else None

def login(email):
    status, body = call("POST", "/api/auth/login", {"email": email, "password": PASSWORD})
    assert status == "200 OK", body
    return body["data"]["token"]

# ===================================================================
#  기본 동작
# ===================================================================
class TestBasics:
    def test_health(self, db_factory):
        status, body = call("GET", "/api/health")
        assert status == "200 OK"
        assert body["success"] is True

    def test_unknown_route(self, db_factory):
        status, body = call("GET", "/api/unknown")
        assert status == "404 Not Found"
        assert body["error"]["code"] == "NOT_FOUND"

    def test_preflight_returns_cors_headers(self, db_factory):
        environ = {}
        setup_testing_defaults(environ)
        environ.update({"REQUEST_METHOD": "OPTIONS", "PATH_INFO": "/api/projects"})
        captured = {}
        app_module.application(environ, lambda status, headers: captured.update(status=status, headers=dict(headers)))
        assert captured["status"] == "200 OK"
        assert "Authorization" in captured["headers"]["Access-Control-Allow-Headers"]

    def test_invalid_json_body(self, db_factory):
        status, body = call("POST", "/api/auth/login", raw=b"{not json")
        assert status == "400 Bad Request"
        assert body["error"]["code"] == "VALIDATION_ERROR"

# ===================================================================
#  인증
# ===================================================================
class TestAuthApi:
    def test_login_and_me(self, seed_user):
        seed_user("admin@example.com", role="admin")

        token = login("admin@example.com")
        status, body = call("GET", "/api/auth/me", token=token)

        assert status == "200 OK"
        assert body["data"]["user"]["email"] == "admin@example.com"
        assert body["data"]["user"]["roles"] == ["admin"]

    def test_wrong_password(self, seed_user):
        seed_user("taro@example.com")

        status, body = call("POST", "/api/auth/login", {"email": "taro@example.com", "password": "nope-nope"})

        assert status == "401 Unauthorized"
        assert body == {"success": False, "error": {"code": "AUTH_ERROR", "message": "Invalid email or password."}}

    def test_suspended_account(self, seed_user):
        seed_user("taro@example.com", status="suspended")

        status, body = call("POST", "/api/auth/login", {"email": "taro@example.com", "password": PASSWORD})

        assert status == "403 Forbidden"
        assert body["error"]["code"] == "ACCOUNT_SUSPENDED"

    @pytest.mark.parametrize("token", [None, "garbage", "a.b.c"])
    def test_me_requires_valid_token(self, db_factory, token):
        status, body = call("GET", "/api/auth/me", token=token)
        assert status == "401 Unauthorized"
        assert body["error"]["code"] == "AUTH_ERROR"

    def test_signup_then_duplicate(self, db_factory):
        status, body = call("POST", "/api/auth/signup",
                            {"email": "new@example.com", "password": PASSWORD, "name": "Hanako"})
        assert status == "201 Created"
        assert body["data"]["user"]["role"] == "member"
        assert call("GET", "/api/auth/me", token=body["data"]["token"])[0] == "200 OK"

        status, body = call("POST", "/api/auth/signup",
                            {"email": "new@example.com", "password": PASSWORD, "name": "Hanako"})
        assert status == "400 Bad Request"

    def test_stale_token_does_not_break_public_endpoint(self, db_factory):
        status, body = call("GET", "/api/projects", token="stale.token.value")
        assert status == "200 OK"
        assert body["data"]["projects"] == []

# ===================================================================
#  관리자 사용자 관리
# ===================================================================
class TestUserAdminApi:
    def test_member_cannot_list_users(self, seed_user):
        seed_user("taro@example.com")

        status, body = call("GET", "/api/users", token=login("taro@example.com"))

        assert status == "403 Forbidden"
        assert body["error"]["code"] == "FORBIDDEN"

    def test_admin_creates_and_resets_user(self, seed_user):
        seed_user("admin@example.com", role="admin")
        token = login("admin@example.com")

        status, body = call("POST", "/api/users", {"email": "owner@example.com", "password": PASSWORD,
                                                   "name": "Owner", "role": "owner"}, token=token)
        assert status == "201 Created"
        user_id = body["data"]["user"]["id"]

        status, body = call("POST", f"/api/users/{user_id}/reset-password", token=token)
        assert status == "200 OK"
        temp_password = body["data"]["tempPassword"]
        status, _ = call("POST", "/api/auth/login", {"email": "owner@example.com", "password": temp_password})
        assert status == "200 OK"

        status, body = call("GET", "/api/users", token=token)
        assert {u["email"] for u in body["data"]["users"]} == {"admin@example.com", "owner@example.com"}

    def test_admin_cannot_delete_self(self, seed_user):
        admin_id = seed_user("admin@example.com", role="admin")

        status, _ = call("DELETE", f"/api/users/{admin_id}", token=login("admin@example.com"))

        assert status == "400 Bad Request"

    def test_delete_user_removes_participations_and_orphans_projects(self, seed_user, db_factory):
        seed_user("admin@example.com", role="admin")
        owner_id = seed_user("owner@example.com", role="owner")
        member_id = seed_user("member@example.com")
        owner_token = login("owner@example.com")
        _, body = call("POST", "/api/projects", {"title": "Web shop", "description": "EC", "category": "web"},
                       token=owner_token)
        project_id = body["data"]["project"]["id"]
        call("POST", f"/api/projects/{project_id}/apply", {"role_in_project": "Frontend"},
             token=login("member@example.com"))

        admin_token = login("admin@example.com")
        assert call("DELETE", f"/api/users/{member_id}", token=admin_token)[0] == "200 OK"
        assert call("DELETE", f"/api/users/{owner_id}", token=admin_token)[0] == "200 OK"

        db = db_factory()
        try:
            project = db.query(models.Project).filter(models.Project.id == project_id).one()
            assert project.owner_id is None
            assert db.query(models.ProjectParticipant).count() == 0
        finally:
            db.close()

# ===================================================================
#  프로젝트와 참가 신청
# ===================================================================
class TestProjectApi:
    @pytest.fixture
    def project_setup(self, seed_user):
        seed_user("owner@example.com", role="owner")
        seed_user("member@example.com", skills=["Python"], experience_years=3)
        owner_token = login("owner@example.com")
        _, body = call("POST", "/api/projects", {
            "title": "Data pipeline", "description": "ETL", "category": "data", "required_skills": ["python"],
        }, token=owner_token)
        return {"owner": owner_token, "member": login("member@example.com"), "project": body["data"]["project"]}

    def test_create_project_requires_login(self, db_factory):
        status, _ = call("POST", "/api/projects", {"title": "x", "description": "y", "category": "web"})
        assert status == "401 Unauthorized"

    def test_apply_then_duplicate_conflict(self, project_setup):
        project_id = project_setup["project"]["id"]

        status, body = call("POST", f"/api/projects/{project_id}/apply", {"role_in_project": "Backend"},
                            token=project_setup["member"])
        assert status == "201 Created"
        assert body["data"]["application"]["status"] == "accepted"

        status, body = call("POST", "/api/applications", {"project_id": project_id, "role_in_project": "Backend"},
                            token=project_setup["member"])
        assert status == "409 Conflict"
        assert body["error"]["code"] == "CONFLICT"

        _, body = call("GET", f"/api/projects/{project_id}/participants", token=project_setup["owner"])
        assert len(body["data"]["participants"]) == 1

        _, body = call("GET", "/api/projects/my-owned", token=project_setup["owner"])
        assert body["data"]["projects"][0]["current_members"] == 1

        _, body = call("GET", "/api/projects/my-joined", token=project_setup["member"])
        assert [p["id"] for p in body["data"]["projects"]] == [project_id]

    def test_owner_rejects_application(self, project_setup):
        project_id = project_setup["project"]["id"]
        _, body = call("POST", f"/api/projects/{project_id}/apply", {"role_in_project": "Backend"},
                       token=project_setup["member"])
        application_id = body["data"]["application"]["id"]

        status, body = call("PUT", f"/api/projects/{project_id}/applications/{application_id}",
                            {"status": "rejected", "response_message": "Sorry"}, token=project_setup["member"])
        assert status == "403 Forbidden"

        status, body = call("PUT", f"/api/projects/{project_id}/applications/{application_id}",
                            {"status": "rejected", "response_message": "Sorry"}, token=project_setup["owner"])
        assert status == "200 OK"
        assert body["data"]["application"]["status"] == "rejected"

    def test_cannot_apply_when_not_recruiting(self, project_setup):
        project_id = project_setup["project"]["id"]
        status, _ = call("PUT", f"/api/projects/{project_id}", {"status": "completed"}, token=project_setup["owner"])
        assert status == "200 OK"

        status, body = call("POST", f"/api/projects/{project_id}/apply", {"role_in_project": "Backend"},
                            token=project_setup["member"])
        assert status == "400 Bad Request"

    def test_board_scores_for_logged_in_user(self, project_setup):
        status, body = call("GET", "/api/projects/board", token=project_setup["member"], query="sort=match")
        assert status == "200 OK"
        item = body["data"]["projects"][0]
        assert item["match_score"] == 73
        assert item["match_level"] == "medium"

        _, body = call("GET", "/api/projects/board", query="search=etl&category=data")
        assert body["data"]["projects"][0]["match_score"] == 50

        _, body = call("GET", "/api/projects/board", query="category=web")
        assert body["data"]["projects"] == []

    def test_update_profile_and_read_back(self, project_setup):
        status, body = call("PUT", "/api/users/profile", {
            "name": "Member", "strengths_finder": ["Strategic", "Learner", "Achiever", "Focus", "Relator"],
            "sixteen_types": {"type": "INTP"}, "skills": ["Python", "Go"], "experience_years": 2,
        }, token=project_setup["member"])
        assert status == "200 OK"

        _, body = call("GET", "/api/users/profile", token=project_setup["member"])
        assert body["data"]["profile"]["sixteen_types"] == {"type": "INTP", "name": "論理学者型"}

    def test_delete_project_by_non_owner(self, project_setup):
        project_id = project_setup["project"]["id"]
        status, _ = call("DELETE", f"/api/projects/{project_id}", token=project_setup["member"])
        assert status == "403 Forbidden"
        status, _ = call("DELETE", f"/api/projects/{project_id}", token=project_setup["owner"])
        assert status == "200 OK"
        assert call("DELETE", f"/api/projects/{project_id}", token=project_setup["owner"])[0] == "404 Not Found"

# ===================================================================
#  잘못된 JSON 타입은 400으로 응답
# ===================================================================
class TestFieldTypes:
    @pytest.mark.parametrize("body", [
        {"email": "taro@example.com", "password": 12345678},
        {"email": ["taro@example.com"], "password": PASSWORD},
        {"email": "taro@example.com", "password": {"value": PASSWORD}},
    ])
    def test_login_with_non_string_fields(self, seed_user, body):
        seed_user("taro@example.com")

        status, response = call("POST", "/api/auth/login", body)

        assert status == "400 Bad Request"
        assert response["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("body", [
        {"email": "new@example.com", "password": 12345678, "name": "Hanako"},
        {"email": "new@example.com", "password": PASSWORD, "name": ["Hanako"]},
        {"email": 42, "password": PASSWORD, "name": "Hanako"},
    ])
    def test_signup_with_non_string_fields(self, db_factory, body):
        status, response = call("POST", "/api/auth/signup", body)

        assert status == "400 Bad Request"
        assert response["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("path, body", [
        ("/api/users", {"email": "x@example.com", "password": 12345678, "name": "X"}),
        ("/api/users", {"email": "x@example.com", "password": PASSWORD, "name": "X", "role": ["admin"]}),
        ("/api/users/{id}/password", {"password": 123456789}),
    ])
    def test_admin_endpoints_with_non_string_fields(self, seed_user, path, body):
        seed_user("admin@example.com", role="admin")
        member_id = seed_user("member@example.com")
        method = "PUT" if path.endswith("password") else "POST"

        status, response = call(method, path.format(id=member_id), body, token=login("admin@example.com"))

        assert status == "400 Bad Request"
        assert response["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("body", [
        {"name": "bob", "sixteen_types": {"type": ["INTJ"]}},
        {"name": "bob", "strengths_finder": [["Strategic"], "Learner", "Achiever", "Focus", "Relator"]},
        {"name": "bob", "bio": ["hello"]},
        {"name": 12345},
    ])
    def test_profile_update_with_non_string_fields(self, seed_user, body):
        seed_user("member@example.com")

        status, response = call("PUT", "/api/users/profile", body, token=login("member@example.com"))

        assert status == "400 Bad Request"
        assert response["error"]["code"] == "VALIDATION_ERROR"

    def test_fractional_team_size(self, seed_user):
        seed_user("owner@example.com", role="owner")

        status, response = call("POST", "/api/projects", {"title": "Web shop", "description": "EC",
                                                          "category": "web", "team_size": 2.7},
                                token=login("owner@example.com"))

        assert status == "400 Bad Request"
        assert response["error"]["code"] == "VALIDATION_ERROR"

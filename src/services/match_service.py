import json
import math
from typing import Any, Dict, List, Optional

from src.repositories.interfaces import IProjectRepository, IUserRepository
from src.services.project_service import serialize_project
from src.utils.catalogs import strength_display_name

# 가중치 합계는 1.0
WEIGHTS = {"skills": 0.4, "strengths": 0.3, "type": 0.2, "experience": 0.1}

NEUTRAL_SCORE = 50
MIN_SCORE = 50
MAX_SCORE = 95  # 100%는 현실적이지 않으므로 상한을 둡니다.

TYPE_MATCH_SCORE = 100
TYPE_MISMATCH_SCORE = 30

NO_PROFILE_REASON = "プロフィールを設定するとマッチング理由が表示されます"
FALLBACK_REASON = "基本的なスキルセットが適合しています"

BOARD_STATUSES = ("recruiting",)


# --------------------------------------------------------------------------
## 입력 정규화
# --------------------------------------------------------------------------

def _field(obj: Any, name: str) -> Any:
    """dict와 ORM 객체 모두에서 필드를 읽습니다."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_list(value: Any) -> List[str]:
    """JSON 문자열, 리스트, None을 문자열 리스트로 정규화합니다. 해석할 수 없으면 빈 리스트."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if not isinstance(value, (list, tuple, set)):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _personality_type(profile: Any) -> Optional[str]:
    value = _field(profile, "sixteen_types")
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return value.strip() or None
    if isinstance(value, dict):
        code = value.get("type")
        return code if isinstance(code, str) and code else None
    return None


def _experience_years(profile: Any) -> int:
    try:
        years = int(_field(profile, "experience_years") or 0)
    except (TypeError, ValueError):
        return 0
    return max(years, 0)


def _skill_matches(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


# --------------------------------------------------------------------------
## 점수 계산
# --------------------------------------------------------------------------

def skill_factor(profile: Any, project: Any) -> float:
    required = _as_list(_field(project, "required_skills"))
    if not required:
        return NEUTRAL_SCORE
    user_skills = _as_list(_field(profile, "skills"))
    matched = [r for r in required if any(_skill_matches(r, s) for s in user_skills)]
    return len(matched) / len(required) * 100


def strength_factor(profile: Any, project: Any) -> float:
    preferred = _unique(_as_list(_field(project, "preferred_strengths")))
    user_strengths = _unique(_as_list(_field(profile, "strengths_finder")))
    if not preferred or not user_strengths:
        return NEUTRAL_SCORE
    matched = [s for s in user_strengths if s in preferred]
    return len(matched) / min(len(preferred), len(user_strengths)) * 100


def type_factor(profile: Any, project: Any) -> float:
    user_type = _personality_type(profile)
    preferred = _as_list(_field(project, "preferred_types"))
    if not user_type or not preferred:
        return NEUTRAL_SCORE
    return TYPE_MATCH_SCORE if user_type in preferred else TYPE_MISMATCH_SCORE


def experience_factor(profile: Any) -> float:
    years = _experience_years(profile)
    if years >= 3:
        return 80
    if years >= 1:
        return 60
    return 40


def calculate_match_score(profile: Any, project: Any) -> int:
    """
    사용자 프로필과 프로젝트 요구 사항의 적합도를 50~95 사이의 정수로 계산합니다.

    스킬(0.4), StrengthsFinder 資質(0.3), 16타입(0.2), 경력 연수(0.1)의 가중합을
    반올림한 뒤 [50, 95]로 제한합니다. 프로필이 없으면 항상 50을 반환합니다.

    Args:
        profile: 사용자 프로필 (dict 또는 models.User). None 허용.
        project: 프로젝트 (dict 또는 models.Project).

    Returns:
        50 이상 95 이하의 정수 점수.
    """
    if profile is None:
        return NEUTRAL_SCORE

    total = (
        skill_factor(profile, project) * WEIGHTS["skills"]
        + strength_factor(profile, project) * WEIGHTS["strengths"]
        + type_factor(profile, project) * WEIGHTS["type"]
        + experience_factor(profile) * WEIGHTS["experience"]
    )
    # 0.5는 올림
    rounded = int(math.floor(total + 0.5))
    return max(MIN_SCORE, min(MAX_SCORE, rounded))


def match_level(score: int) -> str:
    if score >= 80:
        return "high"
    if score >= 60:
        return "medium"
    return "low"


def get_match_reasons(profile: Any, project: Any) -> List[str]:
    """
    매칭 근거 문장 목록을 생성합니다.

    순서: (a) 일치 스킬, (b) 일치 資質, (c) 16타입 일치, (d) 3년 이상 경력.
    해당 사항이 없으면 일반 문장 하나, 프로필이 없으면 프로필 설정 안내 하나만 반환합니다.
    """
    if profile is None:
        return [NO_PROFILE_REASON]

    reasons = []

    required = _as_list(_field(project, "required_skills"))
    if required:
        user_skills = _as_list(_field(profile, "skills"))
        matching_skills = [s for s in user_skills if any(_skill_matches(s, r) for r in required)]
        if matching_skills:
            reasons.append(f"あなたのスキル「{'、'.join(matching_skills)}」がプロジェクトの必要スキルと一致")

    preferred_strengths = _as_list(_field(project, "preferred_strengths"))
    user_strengths = _unique(_as_list(_field(profile, "strengths_finder")))
    if preferred_strengths and user_strengths:
        matching_strengths = [s for s in user_strengths if s in preferred_strengths]
        if matching_strengths:
            names = "、".join(strength_display_name(s) for s in matching_strengths)
            reasons.append(f"あなたの資質「{names}」がプロジェクトに適合")

    user_type = _personality_type(profile)
    if user_type and user_type in _as_list(_field(project, "preferred_types")):
        reasons.append(f"あなたの性格タイプ「{user_type}」がプロジェクトの希望タイプと一致")

    years = _experience_years(profile)
    if years >= 3:
        reasons.append(f"{years}年の豊富な経験がプロジェクトに活かせます")

    return reasons or [FALLBACK_REASON]


# --------------------------------------------------------------------------
## 프로젝트 보드
# --------------------------------------------------------------------------

class MatchService:
    """모집 중인 프로젝트를 검색/필터링하고 사용자 프로필 기준 매칭 점수를 붙여 제공합니다."""

    def __init__(self, project_repo: IProjectRepository, user_repo: IUserRepository):
        self.project_repo = project_repo
        self.user_repo = user_repo

    def build_board(self, user_id: Optional[int] = None, search: str = "", category: str = "all",
                    sort_by_score: bool = False) -> List[Dict[str, Any]]:
        """
        프로젝트 보드 목록을 생성합니다.

        Args:
            user_id: 매칭 기준이 될 사용자 ID. None이거나 찾을 수 없으면 프로필 없음으로 처리합니다.
            search: 제목/설명에 대한 대소문자 무시 부분 일치 검색어.
            category: 카테고리 필터. 'all'이면 필터링하지 않습니다.
            sort_by_score: True이면 매칭 점수 내림차순으로 정렬합니다.

        Returns:
            match_score, match_level, match_reasons가 추가된 프로젝트 딕셔너리의 리스트.
        """
        profile = self.user_repo.find_by_id(user_id) if user_id is not None else None
        term = (search or "").strip().lower()

        board = []
        for project in self.project_repo.list_by_statuses(BOARD_STATUSES):
            if category and category != "all" and project.category != category:
                continue
            if term and term not in (project.title or "").lower() and term not in (project.description or "").lower():
                continue
            item = serialize_project(project)
            score = calculate_match_score(profile, project)
            item["match_score"] = score
            item["match_level"] = match_level(score)
            item["match_reasons"] = get_match_reasons(profile, project)
            board.append(item)

        if sort_by_score:
            board.sort(key=lambda p: p["match_score"], reverse=True)
        return board

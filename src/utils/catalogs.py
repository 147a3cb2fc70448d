# src/utils/catalogs.py
"""StrengthsFinder 34資質 및 16타입 카탈로그 (코드 -> 표시 이름)."""

STRENGTHS_FINDER = {
    "Achiever": "達成欲",
    "Activator": "活発性",
    "Adaptability": "適応性",
    "Analytical": "分析思考",
    "Arranger": "アレンジ",
    "Belief": "信念",
    "Command": "指令性",
    "Communication": "コミュニケーション",
    "Competition": "競争性",
    "Connectedness": "運命思考",
    "Consistency": "公平性",
    "Context": "背景思考",
    "Deliberative": "慎重さ",
    "Developer": "成長促進",
    "Discipline": "規律性",
    "Empathy": "共感性",
    "Focus": "目標志向",
    "Futuristic": "未来志向",
    "Harmony": "調和性",
    "Ideation": "着想",
    "Includer": "包含",
    "Individualization": "個別化",
    "Input": "収集心",
    "Intellection": "内省",
    "Learner": "学習欲",
    "Maximizer": "最上志向",
    "Positivity": "ポジティブ",
    "Relator": "親密性",
    "Responsibility": "責任感",
    "Restorative": "回復志向",
    "Self-Assurance": "自己確信",
    "Significance": "自我",
    "Strategic": "戦略性",
    "Woo": "社交性",
}

SIXTEEN_TYPES = {
    "INTJ": "建築家型",
    "INTP": "論理学者型",
    "ENTJ": "指揮官型",
    "ENTP": "討論者型",
    "INFJ": "提唱者型",
    "INFP": "仲介者型",
    "ENFJ": "主人公型",
    "ENFP": "運動家型",
    "ISTJ": "管理者型",
    "ISFJ": "擁護者型",
    "ESTJ": "幹部型",
    "ESFJ": "領事官型",
    "ISTP": "巨匠型",
    "ISFP": "冒険家型",
    "ESTP": "起業家型",
    "ESFP": "エンターテイナー型",
}

STRENGTHS_SELECTION_COUNT = 5


def strength_display_name(code: str) -> str:
    """카탈로그에 없는 코드는 원래 코드를 그대로 반환합니다."""
    return STRENGTHS_FINDER.get(code, code)

"""
Запросы советов к внешнему генератору текста.

Сам генератор - непрозрачная функция text -> text (LLM-сервис хоста).
Здесь только отбор данных, сборка промпта и тексты-заглушки.
"""
from __future__ import annotations
import logging
from typing import Callable, Dict, Optional, Sequence
from .models import GradeRecord
from .scoring import RankedStudent
from .utils import load_rules

logger = logging.getLogger(__name__)

RULES = load_rules()

Generator = Callable[[str], str]

WEAK_SCORE_THRESHOLD = float(RULES.get("advice", {}).get("weak_score_threshold", 56))

GRADE_UNAVAILABLE = "AI-анализ временно недоступен."
GRADE_ALL_GOOD = "Отличная работа! Все темы усвоены хорошо. Продолжай в том же духе!"
GRADE_FAILED = "Не удалось сгенерировать рекомендации. Пожалуйста, попробуйте еще раз позже."

RATING_UNAVAILABLE = "Анализ рейтинга временно недоступен."
RATING_FIRST_PLACE = "Поздравляю, ты на первом месте! Это потрясающий результат. Так держать!"
RATING_FAILED = "Не удалось получить персональный совет. Но я уверен, у тебя все получится!"

ABSENCE_UNAVAILABLE = "Анализ отработок временно недоступен."
ABSENCE_NONE = "Отлично! У тебя нет пропусков практических занятий. Так держать!"
ABSENCE_FAILED = "Не удалось получить персональный совет. Постарайся не пропускать занятия!"


def _call(generate: Generator, prompt: str, fallback: str, what: str) -> str:
    try:
        return generate(prompt)
    except Exception:
        logger.exception("Ошибка генерации совета (%s)", what)
        return fallback


def weak_topics(grades: Sequence[GradeRecord], threshold: float = WEAK_SCORE_THRESHOLD) -> list[str]:
    return [
        f'"{g.topic}" ({g.score} баллов)'
        for g in grades
        if g.score.is_numeric and g.score.value <= threshold
    ]


def build_grade_prompt(subject: str, grades: Sequence[GradeRecord], weak: Sequence[str]) -> str:
    all_grades = "; ".join(f'Тема: "{g.topic}", Оценка: {str(g.score) or "нет"}' for g in grades)
    return (
        "Ты — опытный AI-наставник для студента-медика.\n"
        f'Проанализируй успеваемость по предмету "{subject}".\n'
        f"Вот все оценки студента по этому предмету: {all_grades}.\n"
        f"Особое внимание удели темам, которые требуют улучшения "
        f"(балл {WEAK_SCORE_THRESHOLD:g} и ниже): {', '.join(weak)}.\n"
        "Дай краткие, четкие и практические рекомендации по улучшению знаний именно по этим темам. "
        "Не нужно писать общие советы. Отвечай на русском языке простым текстом, без списков."
    )


def grade_advice(subject: str, grades: Sequence[GradeRecord], generate: Optional[Generator]) -> str:
    if generate is None:
        return GRADE_UNAVAILABLE

    weak = weak_topics(grades)
    if not weak:
        return GRADE_ALL_GOOD

    return _call(generate, build_grade_prompt(subject, grades, weak), GRADE_FAILED, "оценки")


def rating_advice(
    current: Optional[RankedStudent],
    ranked: Sequence[RankedStudent],
    user_name: str,
    generate: Optional[Generator],
) -> str:
    if generate is None or current is None:
        return RATING_UNAVAILABLE

    if current.rank == 1:
        return RATING_FIRST_PLACE

    above = next((u for u in ranked if u.rank == current.rank - 1), None)
    if above is not None:
        diff = above.avg - current.avg
        goal = f"Чтобы подняться выше и обогнать {above.name}, тебе нужно набрать всего {diff:.2f} балла."
    else:
        goal = "Продолжай усердно работать, чтобы подняться в рейтинге!"

    prompt = (
        f"Ты — AI-ассистент, который должен мотивировать студента по имени {user_name}.\n"
        f"Его текущее место в рейтинге: {current.rank} из {len(ranked)}.\n"
        f"Средний балл: {current.avg:.2f}.\n"
        f"{goal}\n"
        "Напиши короткое, дружелюбное и мотивирующее сообщение (2-3 предложения). "
        "Не используй списки или markdown. Говори как друг и помощник."
    )
    return _call(generate, prompt, RATING_FAILED, "рейтинг")


def absence_advice(
    absences_by_subject: Dict[str, Sequence[GradeRecord]],
    user_name: str,
    generate: Optional[Generator],
) -> str:
    if generate is None:
        return ABSENCE_UNAVAILABLE

    counts = [(subj, len(items)) for subj, items in absences_by_subject.items() if len(items) > 0]
    if not counts:
        return ABSENCE_NONE

    subject, count = sorted(counts, key=lambda x: x[1], reverse=True)[0]
    prompt = (
        f"Ты — дружелюбный AI-ассистент для студента по имени {user_name}.\n"
        "Проанализируй его пропуски занятий.\n"
        f'Больше всего пропусков ({count}) по предмету "{subject}".\n'
        "Напиши короткое (2-3 предложения), ободряющее сообщение. "
        "Посоветуй обратить особое внимание на этот предмет, чтобы не накопить долги. "
        "Не используй списки или markdown. Тон поддерживающий, а не ругающий."
    )
    return _call(generate, prompt, ABSENCE_FAILED, "пропуски")

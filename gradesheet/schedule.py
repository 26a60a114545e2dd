from __future__ import annotations
from datetime import date, timedelta
from typing import Dict, Iterable, Optional
from dateutil import parser as dtparser
from .models import HomeworkRecord
from .utils import load_rules, norm_text

RULES = load_rules()

# понедельник первой (нечётной) учебной недели
DEFAULT_REFERENCE_MONDAY = dtparser.parse(
    str(RULES.get("academic_week", {}).get("reference_monday", "2025-09-01")),
    yearfirst=True,
).date()


def homework_key(week: int, day: str, subject: str) -> str:
    # один и тот же ключ строится и для ДЗ, и для пары в расписании
    return f"{int(week)}-{norm_text(day)}-{norm_text(subject)}"


def build_homework_map(homeworks: Iterable[HomeworkRecord]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for hw in homeworks:
        out[homework_key(hw.week, hw.day, hw.subject)] = hw.task
    return out


def homework_for(homework_map: Dict[str, str], week: int, day: str, subject: str) -> Optional[str]:
    return homework_map.get(homework_key(week, day, subject))


def monday_of(d: date) -> date:
    return d - timedelta(days=d.weekday())


def current_academic_week(today: Optional[date] = None, reference_monday: Optional[date] = None) -> int:
    """
    Номер недели в двухнедельном цикле: 1 для недель, отстоящих от опорного
    понедельника на чётное число недель, иначе 2. Даты до опорной тоже считаются.
    """
    today = today or date.today()
    reference = monday_of(reference_monday or DEFAULT_REFERENCE_MONDAY)
    weeks = (monday_of(today) - reference).days // 7
    return 1 if weeks % 2 == 0 else 2

from __future__ import annotations
import os
import re
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_DATA_DIR = PACKAGE_DIR / "data"

# переменные окружения, переопределяющие адреса опубликованных таблиц
SOURCE_ENV_VARS = {
    "grades": "GRADES_CSV_URL",
    "homework": "HOMEWORK_CSV_URL",
    "lecture_absences": "LECTURE_ABSENCES_CSV_URL",
}

def load_json(path: Path, default: Any):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except Exception:
        return default

def rules_path() -> Path:
    return DEFAULT_DATA_DIR / "rules.json"

def load_rules() -> Dict[str, Any]:
    return load_json(rules_path(), {})

def sheet_urls(rules: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    # адреса CSV: rules.json -> переопределение из окружения
    rules = load_rules() if rules is None else rules
    defaults = rules.get("sources", {})
    out = {}
    for source, env_var in SOURCE_ENV_VARS.items():
        out[source] = (os.environ.get(env_var) or defaults.get(source, "")).strip()
    return out

def fetch_timeout() -> Optional[float]:
    raw = os.environ.get("GRADESHEET_FETCH_TIMEOUT", "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning("GRADESHEET_FETCH_TIMEOUT=%r не число, таймаут не задан", raw)
        return None

_NBSP_RE = re.compile(r"[\u00A0\u2007\u202F]")  # NBSP варианты
_DASH_CHARS_RE = re.compile(r"[\u2010\u2011\u2012\u2013\u2014\u2212]")


def strip_bom(text: str) -> str:
    if text and text[0] == "\ufeff":
        return text[1:]
    return text


def norm_text(s: Any) -> str:
    """
    Нормализация текста для ключей сопоставления:
    - lower
    - ё -> е
    - неразрывные пробелы
    - все виды тире -> '-'
    - схлопывание пробелов
    """
    if s is None:
        return ""

    s = str(s).replace("\ufeff", "")
    s = _NBSP_RE.sub(" ", s)
    s = s.strip().lower().replace("ё", "е")
    s = _DASH_CHARS_RE.sub("-", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s

_NUM_PREFIX_RE = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?", re.ASCII)
_INT_PREFIX_RE = re.compile(r"^\s*[-+]?\d+", re.ASCII)

def parse_decimal(s: Any) -> Optional[float]:
    # Средний балл из таблицы: "90,5" / "90.5" / "90.5 (ср.)"; берём числовой префикс
    if s is None:
        return None
    txt = str(s).strip().replace(",", ".", 1)
    m = _NUM_PREFIX_RE.match(txt)
    if not m:
        return None
    try:
        return float(m.group(0))
    except ValueError:
        return None

def parse_leading_int(s: Any) -> Optional[int]:
    if s is None:
        return None
    m = _INT_PREFIX_RE.match(str(s))
    return int(m.group(0)) if m else None

# D.M.YYYY, D.M.YY, D.M (разделитель '.' или '/')
_DMY4_RE = re.compile(r"^(\d{1,2})[./](\d{1,2})[./](\d{4})$", re.ASCII)
_DMY2_RE = re.compile(r"^(\d{1,2})[./](\d{1,2})[./](\d{2})$", re.ASCII)
_DM_RE = re.compile(r"^(\d{1,2})[./](\d{1,2})$", re.ASCII)

def normalize_date(raw: Any, today: Optional[date] = None) -> str:
    """
    Приводит дату из шапки блока к виду YYYY-MM-DD.

    Форматы проверяются по порядку:
      D.M.YYYY / D/M/YYYY
      D.M.YY   / D/M/YY    -> век всегда 20xx
      D.M      / D/M       -> текущий календарный год

    Всё, что не подошло, возвращается как есть после strip.
    """
    if raw is None:
        return ""
    txt = str(raw).strip()
    if not txt:
        return ""

    m = _DMY4_RE.match(txt)
    if m:
        day, month, year = m.groups()
    else:
        m = _DMY2_RE.match(txt)
        if m:
            day, month, yy = m.groups()
            year = f"20{yy}"
        else:
            m = _DM_RE.match(txt)
            if not m:
                return txt
            day, month = m.groups()
            year = str((today or date.today()).year)

    # календарь не проверяется: 31.02.2025 -> 2025-02-31
    return f"{year}-{int(month):02d}-{int(day):02d}"

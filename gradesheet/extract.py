from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import numpy as np
import pandas as pd
from .ingest import parse_csv_row, read_grid, split_rows
from .models import GradeRecord, HomeworkRecord, LectureAbsenceRecord, Score
from .utils import load_rules, normalize_date, parse_decimal, parse_leading_int

logger = logging.getLogger(__name__)

RULES = load_rules()

MIN_ROWS = 3
DEFAULT_LECTURE_TOPIC = "Лекция"
# =========================

# Раскладка листа: блоки предметов по фиксированным строкам
# =========================
@dataclass(frozen=True)
class BlockLayout:
    """
    Таблица смещений блоков. Блок = строка дат (в колонке 0 название предмета),
    строка тем и до height-2 строк студентов. Границы блоков ничем не помечены,
    вставка строки выше блока сдвигает весь разбор.
    """
    start_rows: Tuple[int, ...] = (0, 18, 36, 54, 72, 90, 108, 126, 144, 162)
    height: int = 18
    grades_first_column: int = 3
    lectures_first_column: int = 2

    @classmethod
    def from_rules(cls, rules: Optional[Dict[str, Any]] = None) -> BlockLayout:
        blocks = (RULES if rules is None else rules).get("blocks", {})
        base = cls()
        return cls(
            start_rows=tuple(int(x) for x in blocks.get("start_rows", base.start_rows)),
            height=int(blocks.get("height", base.height)),
            grades_first_column=int(blocks.get("grades_first_column", base.grades_first_column)),
            lectures_first_column=int(blocks.get("lectures_first_column", base.lectures_first_column)),
        )


DEFAULT_LAYOUT = BlockLayout.from_rules()
# =========================

# Ячейка оценки -> Score
# =========================
_NUMBER_RE = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$", re.ASCII)

def classify_score(raw: Any, rules: Optional[Dict[str, Any]] = None) -> Score:
    """
    "н" -> ABSENT, "б" -> EXCUSED_MEDICAL, содержит "зачет" -> PASSED,
    конечное число -> NUMERIC (без ограничения диапазона), остальное -> NO_SCORE.
    Маркеры проверяются раньше числа.
    """
    tokens = (RULES if rules is None else rules).get("scores", {})
    absent = tokens.get("absent", "н")
    excused = tokens.get("excused_medical", "б")
    passed = tokens.get("passed", "зачет")

    s = str(raw if raw is not None else "").replace('"', "").strip().lower()

    if s == absent:
        return Score.absent()
    if s == excused:
        return Score.excused_medical()
    if passed in s:
        return Score.passed()

    if not _NUMBER_RE.match(s):
        return Score.no_score()
    value = float(s)
    if not np.isfinite(value):
        return Score.no_score()
    return Score.numeric(value)
# =========================

# Общий обход блоков
# =========================
def _row(grid: pd.DataFrame, r: int) -> List[str]:
    # не короче 3 колонок: id, имя, средний балл читаются всегда
    width = max(grid.shape[1], 3)
    if r < 0 or r >= len(grid):
        return [""] * width
    cells = [str(v).strip() for v in grid.iloc[r].tolist()]
    return cells + [""] * (width - len(cells))


def _iter_blocks(grid: pd.DataFrame, layout: BlockLayout) -> Iterator[Tuple[str, List[str], List[str], List[List[str]]]]:
    # (предмет, строка дат, строка тем, строки студентов) для каждого непустого блока
    n = len(grid)
    for start in layout.start_rows:
        if start >= n:
            continue

        date_row = _row(grid, start)
        subject = date_row[0] if date_row else ""
        if not subject:
            logger.debug("Блок со строки %s пропущен: нет названия предмета", start)
            continue

        topic_row = _row(grid, start + 1)
        stop = min(start + layout.height, n)
        student_rows = [_row(grid, r) for r in range(start + 2, stop)]
        yield subject, date_row, topic_row, student_rows


def _aligned(date_row: Sequence[str], topic_row: Sequence[str], cells: Sequence[str], first_col: int) -> List[Tuple[int, Tuple[str, str, str]]]:
    # строки дат/тем/студента выровнены по номеру колонки: (i, (дата, тема, ячейка))
    return list(enumerate(zip(date_row, topic_row, cells)))[first_col:]


def _read_checked_grid(csv_text: str, what: str) -> pd.DataFrame:
    grid = read_grid(csv_text)
    if len(grid) < MIN_ROWS:
        logger.warning("CSV (%s) содержит менее %s строк", what, MIN_ROWS)
        return pd.DataFrame()
    return grid
# =========================

# 1) Оценки по предметам (лист успеваемости)
# =========================
def decode_grades(
    csv_text: str,
    layout: Optional[BlockLayout] = None,
    *,
    today: Optional[date] = None,
) -> List[GradeRecord]:
    """
    Разбирает лист успеваемости в записи GradeRecord.

    Для каждого студента колонки обходятся справа налево (от последней колонки
    шапки к колонке grades_first_column): потребители рассчитывают на этот
    порядок. Колонка пропускается, если в шапке нет даты или темы.
    """
    layout = layout or DEFAULT_LAYOUT
    grid = _read_checked_grid(csv_text, "оценки")
    if grid.empty:
        return []

    out: List[GradeRecord] = []
    for subject, date_row, topic_row, student_rows in _iter_blocks(grid, layout):
        for cells in student_rows:
            student_id = cells[0]
            if not student_id:
                continue
            student_name = cells[1] or None
            avg = parse_decimal(cells[2]) if cells[2] else None

            for _, (date_label, topic, cell) in reversed(_aligned(date_row, topic_row, cells, layout.grades_first_column)):
                if not date_label or not topic:
                    continue
                out.append(GradeRecord(
                    student_id=student_id,
                    student_name=student_name,
                    subject=subject,
                    topic=topic,
                    date=normalize_date(date_label, today=today),
                    score=classify_score(cell),
                    subject_average=avg,
                ))

    return out
# =========================

# 2) Пропуски лекций (разреженный лист, только "н")
# =========================
def decode_lecture_absences(
    csv_text: str,
    layout: Optional[BlockLayout] = None,
    *,
    today: Optional[date] = None,
) -> List[LectureAbsenceRecord]:
    layout = layout or DEFAULT_LAYOUT
    grid = _read_checked_grid(csv_text, "пропуски лекций")
    if grid.empty:
        return []

    absent = RULES.get("scores", {}).get("absent", "н")
    placeholder = RULES.get("lecture_topic_placeholder", DEFAULT_LECTURE_TOPIC)

    out: List[LectureAbsenceRecord] = []
    for subject, date_row, topic_row, student_rows in _iter_blocks(grid, layout):
        for cells in student_rows:
            student_id = cells[0]
            if not student_id:
                continue
            student_name = cells[1] or None

            # слева направо, начиная с lectures_first_column
            for _, (date_label, topic, cell) in _aligned(date_row, topic_row, cells, layout.lectures_first_column):
                if cell.lower() != absent or not date_label:
                    continue
                out.append(LectureAbsenceRecord(
                    student_id=student_id,
                    student_name=student_name,
                    subject=subject,
                    topic=topic or placeholder,
                    date=normalize_date(date_label, today=today),
                ))

    return out
# =========================

# 3) Домашние задания (обычная таблица: неделя, день, предмет, задание)
# =========================
def decode_homeworks(csv_text: str) -> List[HomeworkRecord]:
    rows = split_rows(csv_text)[1:]  # первая строка - заголовки

    out: List[HomeworkRecord] = []
    for raw in rows:
        cells = parse_csv_row(raw) + ["", "", "", ""]
        week_str, day, subject, task = cells[:4]
        week = parse_leading_int(week_str)
        if week not in (1, 2) or not day or not subject or not task:
            continue
        out.append(HomeworkRecord(week=week, day=day, subject=subject, task=task))

    return out

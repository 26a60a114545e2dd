"""
Этот пакет содержит:
- разбор строк CSV из опубликованных Google-таблиц
- нормализацию дат и классификацию оценок ("н" / "б" / "зачет" / число)
- декодирование блочных листов успеваемости и пропусков лекций
- параллельную загрузку трёх листов
- сводки, рейтинг, ключи расписания и запросы советов
- экспорт отчётов
"""
from .ingest import parse_csv_row, split_rows, read_grid
from .utils import normalize_date
from .models import (
    GradeRecord, HomeworkRecord, LectureAbsenceRecord, Score, ScoreKind, SheetData, UserIdentity,
)
from .extract import (
    BlockLayout, classify_score, decode_grades, decode_homeworks, decode_lecture_absences,
)
from .fetch import SheetFetchError, load_all
from .scoring import (
    absences_by_subject, group_by_subject, rank_students, records_for_user, subject_summary,
)
from .advice import absence_advice, grade_advice, rating_advice
from .schedule import build_homework_map, current_academic_week, homework_key
from .export import export_to_excel_bytes

__all__ = [
    "parse_csv_row",
    "split_rows",
    "read_grid",
    "normalize_date",
    "GradeRecord",
    "HomeworkRecord",
    "LectureAbsenceRecord",
    "Score",
    "ScoreKind",
    "SheetData",
    "UserIdentity",
    "BlockLayout",
    "classify_score",
    "decode_grades",
    "decode_homeworks",
    "decode_lecture_absences",
    "SheetFetchError",
    "load_all",
    "absences_by_subject",
    "group_by_subject",
    "rank_students",
    "records_for_user",
    "subject_summary",
    "grade_advice",
    "rating_advice",
    "absence_advice",
    "build_homework_map",
    "current_academic_week",
    "homework_key",
    "export_to_excel_bytes",
]

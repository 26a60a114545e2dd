from __future__ import annotations
import pandas as pd
from io import BytesIO
from typing import Optional
from .models import SheetData, UserIdentity
from .scoring import records_for_user, records_to_frame, subject_summary

GRADE_COLUMNS = {
    "student_id": "ID",
    "student_name": "ФИО",
    "subject": "Предмет",
    "topic": "Тема",
    "date": "Дата",
    "score": "Оценка",
    "subject_average": "Средний балл",
}

SUMMARY_COLUMNS = {
    "student_id": "ID",
    "student_name": "ФИО",
    "subject": "Предмет",
    "subject_average": "Средний балл (таблица)",
    "numeric_mean": "Среднее по оценкам",
    "numeric_count": "Оценок",
    "absent": "Н",
    "excused_medical": "Б",
    "passed": "Зачётов",
}

HOMEWORK_COLUMNS = {
    "week": "Неделя",
    "day": "День",
    "subject": "Предмет",
    "task": "Задание",
}


def export_to_excel_bytes(data: SheetData, user: Optional[UserIdentity] = None) -> bytes:
    # xlsx-отчёт; если передан user - только его оценки и пропуски
    grades = data.grades
    absences = data.lecture_absences
    if user is not None:
        grades = records_for_user(grades, user)
        absences = records_for_user(absences, user)

    grades_df = records_to_frame(grades)[list(GRADE_COLUMNS)].rename(columns=GRADE_COLUMNS)
    absences_df = records_to_frame(absences)[["student_id", "student_name", "subject", "topic", "date"]].rename(columns=GRADE_COLUMNS)
    summary_df = subject_summary(grades).rename(columns=SUMMARY_COLUMNS)
    homework_df = pd.DataFrame([h.to_dict() for h in data.homeworks], columns=list(HOMEWORK_COLUMNS)).rename(columns=HOMEWORK_COLUMNS)

    sheets = [
        ("Оценки", grades_df),
        ("Сводка по предметам", summary_df),
        ("Пропуски лекций", absences_df),
        ("Домашние задания", homework_df),
    ]

    bio = BytesIO()

    with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
        for name, df in sheets:
            df.to_excel(writer, index=False, sheet_name=name)

        wb = writer.book
        fmt_header = wb.add_format({"bold": True, "bg_color": "#F2F2F2", "border": 1, "valign": "vcenter"})

        def format_df_sheet(sheet_name: str, df: pd.DataFrame, default_width: int = 16, max_width: int = 60):
            ws = writer.sheets.get(sheet_name)
            if ws is None:
                return
            ws.freeze_panes(1, 0)
            ws.autofilter(0, 0, max(1, len(df)), max(0, len(df.columns) - 1))
            for col, name in enumerate(df.columns):
                ws.write(0, col, name, fmt_header)
                w = max(10, min(max_width, int(len(str(name)) * 1.2) + 6))
                ws.set_column(col, col, max(default_width, w))

        for name, df in sheets:
            format_df_sheet(name, df)

        # текст задания длинный
        ws_hw = writer.sheets.get("Домашние задания")
        if ws_hw is not None:
            ws_hw.set_column(3, 3, 80)

    return bio.getvalue()

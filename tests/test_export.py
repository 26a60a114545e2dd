# tests/test_export.py

from io import BytesIO

from openpyxl import load_workbook

from gradesheet.export import export_to_excel_bytes
from gradesheet.models import LectureAbsenceRecord, SheetData, UserIdentity


def _workbook(data, user=None):
    return load_workbook(BytesIO(export_to_excel_bytes(data, user=user)))


def test_export_sheets_and_headers(sample_grades, sample_homeworks):
    data = SheetData(
        grades=sample_grades,
        homeworks=sample_homeworks,
        lecture_absences=[LectureAbsenceRecord("1", "Анна", "Химия", "Лекция", "2025-09-01")],
    )
    wb = _workbook(data)

    assert wb.sheetnames == ["Оценки", "Сводка по предметам", "Пропуски лекций", "Домашние задания"]
    ws = wb["Оценки"]
    assert [c.value for c in ws[1]] == ["ID", "ФИО", "Предмет", "Тема", "Дата", "Оценка", "Средний балл"]
    assert ws.max_row == len(sample_grades) + 1
    assert wb["Домашние задания"].max_row == 3


def test_export_filtered_by_user(sample_grades):
    wb = _workbook(SheetData(grades=sample_grades), user=UserIdentity(id=1))
    ids = {row[0] for row in wb["Оценки"].iter_rows(min_row=2, values_only=True)}
    assert ids == {"1"}


def test_export_empty():
    wb = _workbook(SheetData())
    assert wb["Оценки"].max_row == 1

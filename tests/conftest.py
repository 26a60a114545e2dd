# tests/conftest.py

from datetime import date

import pytest

from gradesheet.models import GradeRecord, HomeworkRecord, Score

BLOCK_HEIGHT = 18


def csv_line(cells):
    out = []
    for c in cells:
        c = str(c)
        if "," in c or '"' in c:
            c = '"' + c.replace('"', '""') + '"'
        out.append(c)
    return ",".join(out)


def make_block(subject, dates, topics, students, first_col=3, height=BLOCK_HEIGHT):
    """Строки одного блока: шапка с датами, строка тем, студенты, пустые строки до height."""
    lead = [""] * (first_col - 1)
    lines = [
        csv_line([subject] + lead + list(dates)),
        csv_line([""] + lead + list(topics)),
    ]
    lines += [csv_line(s) for s in students]
    lines += [""] * (height - len(lines))
    return lines


def make_csv(*blocks, newline="\n"):
    lines = []
    for b in blocks:
        lines.extend(b)
    return newline.join(lines)


@pytest.fixture
def today():
    return date(2030, 5, 20)


@pytest.fixture
def grades_csv():
    physiology = make_block(
        "Физиология",
        ["01.09.2025", "08.09.2025", "15.09.2025"],
        ["Кровь", "Дыхание", ""],
        [
            ["1", "Анна Петрова", "4,5", "80", "н", "99"],
            ["2", "Борис Иванов", "3.9", "б", "зачет", ""],
            ["", "", "", "", "", ""],
        ],
    )
    anatomy = make_block(
        "Анатомия",
        ["1/10/25", "5.10"],
        ["Кости", "Мышцы"],
        [
            ["1", "Анна Петрова", "4.8", "100", "n/a"],
        ],
    )
    return make_csv(physiology, anatomy)


@pytest.fixture
def lectures_csv():
    anatomy = make_block(
        "Анатомия",
        ["01.09.2025", "08.09.2025", "", "22.09.2025"],
        ["Введение", "", "Без даты", "Суставы"],
        [
            ["7", "Вера Смирнова", "н", "Н", "н", "+"],
            ["8", "Глеб Орлов", "", "", "", "н"],
        ],
        first_col=2,
    )
    return make_csv(anatomy)


@pytest.fixture
def homework_csv():
    return "\n".join([
        "Неделя,День,Предмет,Задание",
        "1,Понедельник,Анатомия,\"Выучить кости черепа, стр. 10-15\"",
        "2, Вторник ,Физиология,Конспект <b>темы</b>",
        "неделя,Среда,Химия,Задача 3",
        "3,Среда,Химия,Задача 4",
        "1,Четверг,,Пусто",
    ])


@pytest.fixture
def sample_grades():
    return [
        GradeRecord("1", "Анна", "Физиология", "Дыхание", "2025-09-08", Score.absent(), 4.5),
        GradeRecord("1", "Анна", "Физиология", "Кровь", "2025-09-01", Score.numeric(50), 4.5),
        GradeRecord("1", "Анна", "Анатомия", "Кости", "2025-10-01", Score.numeric(100), 4.8),
        GradeRecord("2", "Борис", "Физиология", "Кровь", "2025-09-01", Score.excused_medical(), 3.9),
        GradeRecord("3", None, "Физиология", "Кровь", "2025-09-01", Score.numeric(70), 4.5),
        GradeRecord("4", "Дина", "Физиология", "Кровь", "2025-09-01", Score.passed(), None),
    ]


@pytest.fixture
def sample_homeworks():
    return [
        HomeworkRecord(1, "Понедельник", "Анатомия", "Кости черепа"),
        HomeworkRecord(2, "Вторник", "Физиология", "Конспект"),
    ]

"""
Типизированные записи, получаемые из опубликованных таблиц.

Записи создаются заново на каждую загрузку и не изменяются (frozen dataclasses),
сравнение структурное. Оценка хранится как tagged union (Score), чтобы
потребители явно обрабатывали "н" / "б" / "зачет" / пустую ячейку.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class ScoreKind(str, Enum):
    NUMERIC = "numeric"
    ABSENT = "н"
    EXCUSED_MEDICAL = "б"
    PASSED = "зачет"
    NO_SCORE = "none"


@dataclass(frozen=True)
class Score:
    kind: ScoreKind
    value: Optional[float] = None

    @classmethod
    def numeric(cls, value: float) -> Score:
        return cls(ScoreKind.NUMERIC, float(value))

    @classmethod
    def absent(cls) -> Score:
        return cls(ScoreKind.ABSENT)

    @classmethod
    def excused_medical(cls) -> Score:
        return cls(ScoreKind.EXCUSED_MEDICAL)

    @classmethod
    def passed(cls) -> Score:
        return cls(ScoreKind.PASSED)

    @classmethod
    def no_score(cls) -> Score:
        return cls(ScoreKind.NO_SCORE)

    @property
    def is_numeric(self) -> bool:
        return self.kind == ScoreKind.NUMERIC

    @property
    def is_absent(self) -> bool:
        return self.kind == ScoreKind.ABSENT

    def to_cell(self) -> Any:
        # обратно в вид ячейки таблицы: число, "н", "б", "зачет" или None
        if self.kind == ScoreKind.NUMERIC:
            return self.value
        if self.kind == ScoreKind.NO_SCORE:
            return None
        return self.kind.value

    def __str__(self) -> str:
        if self.kind == ScoreKind.NUMERIC:
            return f"{self.value:g}"
        if self.kind == ScoreKind.NO_SCORE:
            return ""
        return self.kind.value


@dataclass(frozen=True)
class GradeRecord:
    student_id: str
    student_name: Optional[str]
    subject: str
    topic: str
    date: str  # YYYY-MM-DD или исходная строка, если дату не удалось разобрать
    score: Score
    subject_average: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["score"] = self.score.to_cell()
        d["score_kind"] = self.score.kind.value
        return d


@dataclass(frozen=True)
class LectureAbsenceRecord(GradeRecord):
    # в листе пропусков лекций бывают только "н"
    score: Score = field(default_factory=Score.absent)


@dataclass(frozen=True)
class HomeworkRecord:
    week: int  # 1 или 2, чередование учебных недель
    day: str
    subject: str
    task: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UserIdentity:
    """Пользователь, переданный хост-платформой. Ядро его не проверяет, только фильтрует по id."""
    id: int
    display_name: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def key(self) -> str:
        return str(self.id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UserIdentity:
        name = data.get("display_name") or " ".join(
            p for p in (data.get("first_name"), data.get("last_name")) if p
        )
        extra = {k: v for k, v in data.items() if k not in ("id", "display_name")}
        return cls(id=int(data["id"]), display_name=str(name or ""), extra=extra)


@dataclass(frozen=True)
class SheetData:
    grades: List[GradeRecord] = field(default_factory=list)
    homeworks: List[HomeworkRecord] = field(default_factory=list)
    lecture_absences: List[LectureAbsenceRecord] = field(default_factory=list)

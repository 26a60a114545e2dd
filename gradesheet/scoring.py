from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar
import numpy as np
import pandas as pd
from .models import GradeRecord, ScoreKind, UserIdentity
from .utils import load_rules

RULES = load_rules()

R = TypeVar("R", bound=GradeRecord)


@dataclass
class RankedStudent:
    id: str
    name: str
    avg: float
    rank: int


def records_for_user(records: Iterable[R], user: UserIdentity) -> List[R]:
    key = user.key
    return [r for r in records if r.student_id == key]


def group_by_subject(records: Iterable[R]) -> Dict[str, List[R]]:
    # порядок внутри предмета - как у декодера (справа налево по листу)
    out: Dict[str, List[R]] = {}
    for r in records:
        out.setdefault(r.subject, []).append(r)
    return out


def absences_by_subject(records: Iterable[R]) -> Dict[str, List[R]]:
    return group_by_subject(r for r in records if r.score.is_absent)


def subjects_with_many_absences(records: Iterable[R], threshold: Optional[int] = None) -> List[str]:
    if threshold is None:
        threshold = int(RULES.get("advice", {}).get("absence_warning_threshold", 3))
    return [subj for subj, items in absences_by_subject(records).items() if len(items) >= threshold]


def records_to_frame(records: Sequence[GradeRecord]) -> pd.DataFrame:
    cols = ["student_id", "student_name", "subject", "topic", "date", "score", "score_kind", "subject_average"]
    if not records:
        return pd.DataFrame(columns=cols)
    return pd.DataFrame([r.to_dict() for r in records], columns=cols)


def rank_students(grades: Sequence[GradeRecord]) -> List[RankedStudent]:
    """
    Рейтинг по среднему баллу из таблицы.

    Для студента берётся первый встреченный средний балл, имя - из первой его записи
    (или "User <id>"). Студенты без среднего не участвуют. Равные баллы делят место
    (1, 2, 2, 4).
    """
    df = records_to_frame(grades)
    if df.empty:
        return []

    df = df[df["student_id"].astype(str).str.len() > 0]
    # имя - из первой записи студента, даже пустое
    names = df.drop_duplicates("student_id", keep="first").set_index("student_id")["student_name"]
    first = df.groupby("student_id", sort=False).agg(avg=("subject_average", "first")).reset_index()
    first["name"] = first["student_id"].map(names)

    first = first[first["avg"].notna()]
    if first.empty:
        return []

    first["avg"] = first["avg"].astype(float)
    first = first.sort_values("avg", ascending=False, kind="mergesort").reset_index(drop=True)
    first["rank"] = first["avg"].rank(method="min", ascending=False).astype(int)

    out = []
    for _, r in first.iterrows():
        name = r["name"] if isinstance(r["name"], str) and r["name"] else f"User {r['student_id']}"
        out.append(RankedStudent(id=str(r["student_id"]), name=name, avg=float(r["avg"]), rank=int(r["rank"])))
    return out


def find_rank(ranked: Sequence[RankedStudent], user: UserIdentity) -> Optional[RankedStudent]:
    for r in ranked:
        if r.id == user.key:
            return r
    return None


def subject_summary(grades: Sequence[GradeRecord]) -> pd.DataFrame:
    # свод по (студент, предмет): средний из таблицы, среднее по числовым оценкам, счётчики маркеров
    cols = [
        "student_id", "student_name", "subject", "subject_average",
        "numeric_mean", "numeric_count", "absent", "excused_medical", "passed",
    ]
    df = records_to_frame(grades)
    if df.empty:
        return pd.DataFrame(columns=cols)

    df["numeric"] = pd.to_numeric(df["score"].where(df["score_kind"] == ScoreKind.NUMERIC.value), errors="coerce")
    df["is_absent"] = df["score_kind"] == ScoreKind.ABSENT.value
    df["is_excused"] = df["score_kind"] == ScoreKind.EXCUSED_MEDICAL.value
    df["is_passed"] = df["score_kind"] == ScoreKind.PASSED.value

    out = df.groupby(["student_id", "subject"], sort=False).agg(
        student_name=("student_name", "first"),
        subject_average=("subject_average", "first"),
        numeric_mean=("numeric", "mean"),
        numeric_count=("numeric", "count"),
        absent=("is_absent", "sum"),
        excused_medical=("is_excused", "sum"),
        passed=("is_passed", "sum"),
    ).reset_index()

    out["numeric_mean"] = out["numeric_mean"].map(lambda x: np.nan if pd.isna(x) else round(float(x), 2))
    for c in ("numeric_count", "absent", "excused_medical", "passed"):
        out[c] = out[c].astype(int)
    return out[cols]

from __future__ import annotations
import re
from typing import List, Sequence
import pandas as pd
from .utils import strip_bom

_ROW_SPLIT_RE = re.compile(r"\r?\n")
# =========================

# CSV: одна строка -> список ячеек
# =========================
def parse_csv_row(line: str) -> List[str]:
    """
    Разбивает одну строку CSV на ячейки.

    - ',' разделяет ячейки только вне кавычек
    - '"' переключает режим кавычек; '""' внутри кавычек даёт литерал '"'
    - каждая ячейка обрезается по краям
    Незакрытая кавычка не ошибка: остаток строки считается содержимым ячейки.
    """
    values: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1

    values.append("".join(current).strip())
    return values


def split_rows(csv_text: str) -> List[str]:
    # BOM в начале выгрузки Google Sheets, строки через \n или \r\n
    if not csv_text:
        return []
    text = strip_bom(csv_text).strip()
    if not text:
        return []
    return _ROW_SPLIT_RE.split(text)
# =========================

# Матрица ячеек: строки листа как DataFrame без заголовков
# =========================
def rows_to_grid(rows: Sequence[Sequence[str]]) -> pd.DataFrame:
    """
    Ячейки -> DataFrame (header=None-подобная матрица).
    Короткие строки добиваются пустыми строками справа, поэтому любые
    две строки листа можно сопоставлять по номеру колонки.
    Индекс DataFrame = номер строки в исходнике (с 0).
    """
    if not rows:
        return pd.DataFrame()
    width = max(len(r) for r in rows)
    padded = [list(r) + [""] * (width - len(r)) for r in rows]
    return pd.DataFrame(padded, dtype=object)


def read_grid(csv_text: str) -> pd.DataFrame:
    rows = split_rows(csv_text)
    return rows_to_grid([parse_csv_row(r) for r in rows])

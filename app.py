from __future__ import annotations
import logging
from datetime import date
import pandas as pd
import streamlit as st
from gradesheet.fetch import SheetFetchError, load_all
from gradesheet.models import SheetData, UserIdentity
from gradesheet.schedule import current_academic_week
from gradesheet.scoring import (
    absences_by_subject, find_rank, group_by_subject, rank_students, records_for_user,
    records_to_frame, subject_summary, subjects_with_many_absences,
)
from gradesheet.export import export_to_excel_bytes

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Успеваемость", layout="wide")
st.title("Успеваемость, пропуски и домашние задания")
# =========================

# Пользователь от хоста (query params): ?user_id=...&name=...
# =========================
params = st.query_params
raw_id = params.get("user_id", "")
if not str(raw_id).strip().isdigit():
    st.error("Пользователь не передан (ожидается параметр user_id).")
    st.stop()

user = UserIdentity.from_dict({"id": int(raw_id), "display_name": params.get("name", "")})
# =========================

# Загрузка: последний удачный результат хранится как запасной
# =========================
st.session_state.setdefault("sheet_data", None)
st.session_state.setdefault("loaded_at", None)

def _refresh() -> None:
    try:
        st.session_state["sheet_data"] = load_all()
        st.session_state["loaded_at"] = pd.Timestamp.now()
    except SheetFetchError as e:
        if st.session_state["sheet_data"] is None:
            st.session_state["sheet_data"] = SheetData()
        st.error(f"Не удалось обновить данные. Показаны последние загруженные. ({e})")

if st.session_state["sheet_data"] is None:
    _refresh()

if st.button("Обновить данные"):
    _refresh()

data: SheetData = st.session_state["sheet_data"]
if st.session_state["loaded_at"] is not None:
    st.caption(f"Обновлено: {st.session_state['loaded_at']:%d.%m.%Y %H:%M}")

user_grades = records_for_user(data.grades, user)
user_lectures = records_for_user(data.lecture_absences, user)

tab_grades, tab_abs, tab_hw, tab_rating = st.tabs(["Оценки", "Пропуски", "Домашние задания", "Рейтинг"])
# =========================

# Оценки по предметам (порядок записей как в листе: свежие темы первыми)
# =========================
with tab_grades:
    if not user_grades:
        st.info("Оценок пока нет.")
    summary = subject_summary(user_grades).set_index("subject") if user_grades else pd.DataFrame()
    for subject, items in group_by_subject(user_grades).items():
        avg = summary.loc[subject, "subject_average"] if subject in summary.index else None
        title = subject if pd.isna(avg) else f"{subject}, средний балл {avg:g}"
        with st.expander(title, expanded=False):
            st.dataframe(records_to_frame(items)[["date", "topic", "score"]], width="stretch")

with tab_abs:
    many = subjects_with_many_absences(user_grades)
    if many:
        st.warning("Много пропусков практических занятий: " + ", ".join(many))

    practical = absences_by_subject(user_grades)
    lectures = group_by_subject(user_lectures)
    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Практические")
        st.metric("Всего", sum(len(v) for v in practical.values()))
        for subject, items in practical.items():
            st.write(f"**{subject}**: " + ", ".join(f"{r.date} ({r.topic})" for r in items))
    with c2:
        st.subheader("Лекции")
        st.metric("Всего", len(user_lectures))
        for subject, items in lectures.items():
            st.write(f"**{subject}**: " + ", ".join(f"{r.date} ({r.topic})" for r in items))

with tab_hw:
    week = current_academic_week(date.today())
    st.write(f"Сейчас {week}-я учебная неделя")
    hw = pd.DataFrame([h.to_dict() for h in data.homeworks if h.week == week])
    if hw.empty:
        st.info("Домашних заданий на эту неделю нет.")
    else:
        st.dataframe(hw, width="stretch")

with tab_rating:
    ranked = rank_students(data.grades)
    me = find_rank(ranked, user)
    if me is not None:
        st.metric("Твоё место", f"{me.rank} из {len(ranked)}", help=f"Средний балл {me.avg:.2f}")
    st.dataframe(pd.DataFrame([r.__dict__ for r in ranked]), width="stretch")

st.download_button(
    "Скачать Excel-отчёт",
    data=export_to_excel_bytes(data, user=user),
    file_name="Успеваемость.xlsx",
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)

from __future__ import annotations
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Dict, Optional
import requests
from .extract import decode_grades, decode_homeworks, decode_lecture_absences
from .models import SheetData
from .utils import fetch_timeout, sheet_urls

logger = logging.getLogger(__name__)

SOURCES = ("grades", "homework", "lecture_absences")


class SheetFetchError(RuntimeError):
    """Не удалось получить CSV одного из листов (сеть или неуспешный статус)."""

    def __init__(self, source: str, url: str, status_code: Optional[int] = None, detail: str = ""):
        self.source = source
        self.url = url
        self.status_code = status_code
        msg = f"Не удалось загрузить лист '{source}'"
        if status_code is not None:
            msg += f" (статус {status_code})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


def _cache_busted(url: str) -> str:
    # таблица опубликована через кэширующий endpoint: каждый запрос делаем уникальным
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}_={int(time.time() * 1000)}"


def fetch_csv(source: str, url: str, session=None, timeout: Optional[float] = None) -> str:
    """
    Один GET без повторов. Любая сетевая ошибка или статус не 2xx -> SheetFetchError.
    """
    if not url:
        raise SheetFetchError(source, url, detail="адрес не задан")

    live_url = _cache_busted(url)
    http = session or requests
    try:
        resp = http.get(live_url, timeout=timeout, headers={
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        })
        logger.info("[%s] %s -> %s", source, live_url, getattr(resp, "status_code", "n/a"))
        resp.raise_for_status()
    except requests.HTTPError as e:
        status = getattr(e.response, "status_code", None)
        logger.error("[%s] неуспешный ответ: %s", source, status)
        raise SheetFetchError(source, url, status_code=status, detail=str(e)) from e
    except requests.RequestException as e:
        logger.error("[%s] ошибка сети: %s", source, e)
        raise SheetFetchError(source, url, detail=str(e)) from e

    return resp.content.decode("utf-8", errors="replace")


def fetch_all_csv(
    urls: Optional[Dict[str, str]] = None,
    session=None,
    timeout: Optional[float] = None,
) -> Dict[str, str]:
    # три независимых запроса параллельно; ждём все, первая ошибка (в порядке SOURCES) пробрасывается
    urls = urls or sheet_urls()
    timeout = timeout if timeout is not None else fetch_timeout()

    with ThreadPoolExecutor(max_workers=len(SOURCES)) as executor:
        futures = {
            source: executor.submit(fetch_csv, source, urls.get(source, ""), session, timeout)
            for source in SOURCES
        }

    texts: Dict[str, str] = {}
    for source in SOURCES:
        texts[source] = futures[source].result()
    return texts


def load_all(
    urls: Optional[Dict[str, str]] = None,
    session=None,
    timeout: Optional[float] = None,
    *,
    today: Optional[date] = None,
) -> SheetData:
    """
    Загружает оценки, домашние задания и пропуски лекций.

    Либо всё загружено и разобрано, либо SheetFetchError: частичного результата
    нет, подстановка кэша/статических данных остаётся за вызывающим.
    """
    texts = fetch_all_csv(urls, session=session, timeout=timeout)

    data = SheetData(
        grades=decode_grades(texts["grades"], today=today),
        homeworks=decode_homeworks(texts["homework"]),
        lecture_absences=decode_lecture_absences(texts["lecture_absences"], today=today),
    )
    logger.info(
        "Загружено: оценок %s, ДЗ %s, пропусков лекций %s",
        len(data.grades), len(data.homeworks), len(data.lecture_absences),
    )
    return data

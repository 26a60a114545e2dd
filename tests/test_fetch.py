# tests/test_fetch.py

import threading

import pytest
import requests

from gradesheet.fetch import SheetFetchError, fetch_csv, load_all
from gradesheet.models import SheetData

URLS = {
    "grades": "https://sheets.example/grades?output=csv",
    "homework": "https://sheets.example/homework?gid=0&output=csv",
    "lecture_absences": "https://sheets.example/lectures",
}


class FakeResponse:
    def __init__(self, text="", status_code=200):
        self.content = text.encode("utf-8")
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None, headers=None):
        with self._lock:
            self.calls.append((url, timeout, headers))
        for base, resp in self.responses.items():
            if url.startswith(base):
                if isinstance(resp, Exception):
                    raise resp
                return resp
        raise AssertionError(f"unexpected url {url}")


@pytest.fixture
def ok_session(grades_csv, homework_csv, lectures_csv):
    return FakeSession({
        URLS["grades"]: FakeResponse("\ufeff" + grades_csv),
        URLS["homework"]: FakeResponse(homework_csv),
        URLS["lecture_absences"]: FakeResponse(lectures_csv),
    })


def test_load_all_decodes_three_sheets(ok_session, today):
    data = load_all(URLS, session=ok_session, today=today)

    assert isinstance(data, SheetData)
    assert len(data.grades) == 6
    assert len(data.homeworks) == 2
    assert len(data.lecture_absences) == 3
    assert len(ok_session.calls) == 3


def test_requests_are_cache_busted(ok_session):
    load_all(URLS, session=ok_session)

    for url, _, headers in ok_session.calls:
        base = next(b for b in URLS.values() if url.startswith(b))
        sep = "&" if "?" in base else "?"
        assert url.startswith(base + sep + "_=")
        assert headers["Cache-Control"] == "no-cache"


def test_timeout_is_forwarded(ok_session):
    load_all(URLS, session=ok_session, timeout=7.5)
    assert {t for _, t, _ in ok_session.calls} == {7.5}


def test_http_error_fails_whole_load(grades_csv, lectures_csv):
    session = FakeSession({
        URLS["grades"]: FakeResponse(grades_csv),
        URLS["homework"]: FakeResponse("", status_code=503),
        URLS["lecture_absences"]: FakeResponse(lectures_csv),
    })

    with pytest.raises(SheetFetchError) as exc:
        load_all(URLS, session=session)

    assert exc.value.source == "homework"
    assert exc.value.status_code == 503
    assert isinstance(exc.value.__cause__, requests.HTTPError)


def test_transport_error_is_wrapped(grades_csv, homework_csv):
    session = FakeSession({
        URLS["grades"]: FakeResponse(grades_csv),
        URLS["homework"]: FakeResponse(homework_csv),
        URLS["lecture_absences"]: requests.ConnectionError("connection reset"),
    })

    with pytest.raises(SheetFetchError) as exc:
        load_all(URLS, session=session)

    assert exc.value.source == "lecture_absences"
    assert exc.value.status_code is None


def test_missing_url_is_an_error():
    with pytest.raises(SheetFetchError):
        fetch_csv("grades", "", session=FakeSession({}))


def test_fetch_csv_returns_text():
    session = FakeSession({"https://x.example/a": FakeResponse("Химия,,,01.09")})
    assert fetch_csv("grades", "https://x.example/a", session=session) == "Химия,,,01.09"

# tests/test_sources.py
# Fuentes de la lista: export CSV de Google Sheets (requests simulado) y archivo local.

import pytest
import requests

from rsvp_app.directory.builder import GuestDirectory
from rsvp_app.directory.source import FileCsvSource, GoogleSheetCsvSource, load_directory
from rsvp_app.errors import SourceUnavailable


class FakeResponse:
    def __init__(self, status_code=200, text="", content_type="text/csv; charset=utf-8"):
        self.status_code = status_code
        self.text = text
        self.headers = {"content-type": content_type}
        self.encoding = None


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append((url, timeout))
        if self.error:
            raise self.error
        return self.response


def test_sheet_source_builds_the_export_url():
    source = GoogleSheetCsvSource("abc123", "42", timeout=3, session=FakeSession(FakeResponse(text="h\n")))
    assert source.url == "https://docs.google.com/spreadsheets/d/abc123/export?format=csv&gid=42"
    source.fetch_text()
    assert source.session.urls == [(source.url, 3)]


def test_load_directory_from_sheet(sample_csv):
    source = GoogleSheetCsvSource("abc123", session=FakeSession(FakeResponse(text=sample_csv)))
    directory = load_directory(source)
    assert len(directory) == 6


@pytest.mark.parametrize("session", [
    FakeSession(error=requests.Timeout("slow")),
    FakeSession(error=requests.ConnectionError("down")),
    FakeSession(FakeResponse(status_code=404, text="not found")),
    FakeSession(FakeResponse(text="<!DOCTYPE html><html>Sign in</html>", content_type="text/html")),
    FakeSession(FakeResponse(text="   \n")),
])
def test_source_failures_raise_source_unavailable_with_an_empty_directory(session):
    source = GoogleSheetCsvSource("abc123", session=session)
    with pytest.raises(SourceUnavailable) as excinfo:
        load_directory(source)
    assert isinstance(excinfo.value.directory, GuestDirectory)
    assert len(excinfo.value.directory) == 0


def test_missing_source_is_unavailable():
    with pytest.raises(SourceUnavailable):
        load_directory(None)


def test_file_source_reads_utf8_with_bom(tmp_path, sample_csv):
    path = tmp_path / "guests.csv"
    path.write_text("\ufeff" + sample_csv, encoding="utf-8")
    directory = load_directory(FileCsvSource(path))
    assert directory.get(0).english_name == "Sarah Abdelrahman"
    assert directory.get(1).arabic_name == "حسني"


def test_missing_file_is_unavailable(tmp_path):
    with pytest.raises(SourceUnavailable):
        load_directory(FileCsvSource(tmp_path / "nope.csv"))

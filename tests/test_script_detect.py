# tests/test_script_detect.py
import pytest

from rsvp_app.directory.script import contains_arabic, detect_script


@pytest.mark.parametrize("text, expected", [
    ("Sarah Abdelrahman", "en"),
    ("سارة عبد الرحمان", "ar"),
    ("Sarah سارة", "ar"),          # Un solo carácter árabe basta.
    ("", "en"),
    ("   ", "en"),
    ("12345", "en"),
    ("\ufefc", "ar"),          # Forma de presentación (teclados móviles).
])
def test_detect_script(text, expected):
    assert detect_script(text) == expected


def test_bom_alone_is_not_arabic():
    assert contains_arabic("\ufeffJohn") is False


def test_none_is_english():
    assert detect_script(None) == "en"

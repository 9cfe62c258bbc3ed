# rsvp_app/directory/script.py
# Detección de escritura (árabe vs. latina) para elegir campo de nombre e idioma de respuesta.

import re
from typing import Literal

ScriptCode = Literal["ar", "en"]

# Bloque árabe + suplemento + formas de presentación (teclados móviles las emiten a veces).
_ARABIC_RE = re.compile(r"[\u0600-\u06FF\u0750-\u077F\uFB50-\uFDFF\uFE70-\uFEFC]")


def contains_arabic(text: str | None) -> bool:
    return bool(text) and _ARABIC_RE.search(text) is not None


def detect_script(text: str | None) -> ScriptCode:
    """Devuelve 'ar' si hay al menos un carácter árabe; si no, 'en'."""
    return "ar" if contains_arabic(text) else "en"

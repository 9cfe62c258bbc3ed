# rsvp_app/directory/source.py

# =================================================================================
# 🌐 FUENTES DE LA LISTA DE INVITADOS
# ---------------------------------------------------------------------------------
# - GoogleSheetCsvSource: export público CSV de Google Sheets (requests).
# - FileCsvSource: archivo CSV local (desarrollo / pruebas).
# - load_directory(): descarga + parseo. Cualquier fallo → SourceUnavailable
#   con un directorio vacío; nunca se devuelve un directorio parcial.
# =================================================================================

import os
from pathlib import Path
from typing import Optional

import requests
from loguru import logger

from rsvp_app.directory.builder import (
    COMPACT_LAYOUT,
    DEFAULT_LAYOUT,
    GuestDirectory,
    SheetLayout,
    build_directory_from_text,
)
from rsvp_app.errors import SourceUnavailable

# --- Configuración desde .env ---
GUEST_SHEET_ID = os.getenv("GUEST_SHEET_ID", "").strip()                     # ID de la hoja publicada.
GUEST_SHEET_GID = os.getenv("GUEST_SHEET_GID", "0").strip()                  # Pestaña (gid) a exportar.
GUEST_CSV_PATH = os.getenv("GUEST_CSV_PATH", "").strip()                     # Alternativa local (tiene prioridad).
GUEST_SOURCE_TIMEOUT = float(os.getenv("GUEST_SOURCE_TIMEOUT", "10"))         # Segundos por descarga.
GUEST_SHEET_LAYOUT = os.getenv("GUEST_SHEET_LAYOUT", "full").strip().lower()  # 'full' (A-G) o 'compact' (A-C).

EXPORT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"


class GoogleSheetCsvSource:
    """Descarga el CSV publicado de una hoja de Google."""

    def __init__(self, sheet_id: str, gid: str = "0", *, timeout: float = GUEST_SOURCE_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.sheet_id = sheet_id
        self.gid = gid
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return EXPORT_URL_TEMPLATE.format(sheet_id=self.sheet_id, gid=self.gid)

    def describe(self) -> str:
        return f"google-sheet:{self.sheet_id[:6]}…/gid={self.gid}"

    def fetch_text(self) -> str:
        try:
            resp = self.session.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:                 # Timeout, DNS, conexión rechazada...
            raise SourceUnavailable(detail=f"fetch error: {e}") from e

        if resp.status_code != 200:
            raise SourceUnavailable(detail=f"HTTP {resp.status_code} from sheet export")

        content_type = (resp.headers.get("content-type") or "").lower()
        resp.encoding = "utf-8"                                 # El export siempre es UTF-8 (árabe incluido).
        text = resp.text
        # Hoja no pública → Google responde 200 con la página de login en HTML.
        if "text/html" in content_type or text.lstrip().lower().startswith(("<!doctype html", "<html")):
            raise SourceUnavailable(detail="sheet export returned HTML (is the sheet shared publicly?)")
        return text


class FileCsvSource:
    """Lee el CSV desde disco (mismo formato que el export)."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def describe(self) -> str:
        return f"file:{self.path}"

    def fetch_text(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceUnavailable(detail=f"cannot read {self.path}: {e}") from e


def layout_from_env() -> SheetLayout:
    return COMPACT_LAYOUT if GUEST_SHEET_LAYOUT == "compact" else DEFAULT_LAYOUT


def source_from_env():
    """Elige la fuente según .env: GUEST_CSV_PATH gana sobre GUEST_SHEET_ID."""
    if GUEST_CSV_PATH:
        return FileCsvSource(GUEST_CSV_PATH)
    if GUEST_SHEET_ID:
        return GoogleSheetCsvSource(GUEST_SHEET_ID, GUEST_SHEET_GID)
    logger.warning("[DIRECTORY] Ni GUEST_CSV_PATH ni GUEST_SHEET_ID configurados; la búsqueda responderá 503.")
    return None


def load_directory(source, layout: SheetLayout = DEFAULT_LAYOUT) -> GuestDirectory:
    """Descarga y construye un directorio nuevo. Errores → SourceUnavailable(directory=vacío)."""
    if source is None:
        raise SourceUnavailable(detail="no guest source configured", directory=GuestDirectory.empty())

    try:
        text = source.fetch_text()
        if not text or not text.strip():
            raise SourceUnavailable(detail="guest source returned an empty body")
        directory = build_directory_from_text(text, layout=layout)
    except SourceUnavailable as e:
        logger.error("[DIRECTORY] Fuente no disponible ({}): {}", source.describe(), e.detail)
        e.directory = GuestDirectory.empty()
        raise
    except Exception as e:                                      # Contenido imposible de interpretar.
        logger.exception("[DIRECTORY] Error inesperado construyendo el directorio desde {}", source.describe())
        raise SourceUnavailable(detail=f"unparseable guest source: {e}", directory=GuestDirectory.empty()) from e

    logger.info("[DIRECTORY] Cargado desde {} → {} invitados", source.describe(), len(directory))
    return directory

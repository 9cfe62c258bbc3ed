# rsvp_app/sheets_writer.py

# =================================================================================
# 📝 ESCRITURA DE RSVP EN GOOGLE SHEETS
# ---------------------------------------------------------------------------------
# - Escribe D (Confirmación), F (Fecha MM/DD/YYYY) y G (Hora HH:MM) de cada fila.
# - E (Mesa) se asigna a mano en la hoja: nunca se toca.
# - Todas las celdas del envío van en UNA llamada values:batchUpdate.
# - Fallos de red / credencial / HTTP ≠ 200 → StorageFailed (reintentable).
# =================================================================================

import os
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

import requests
from loguru import logger

from rsvp_app.auth import GoogleTokenProvider, ServiceAccountError
from rsvp_app.crud.rsvp_crud import confirmation_text
from rsvp_app.directory.builder import GuestRow
from rsvp_app.errors import StorageFailed

SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
SHEET_TAB = os.getenv("GUEST_SHEET_TAB", "Sheet1")
SHEET_TZ = ZoneInfo(os.getenv("GUEST_SHEET_TZ", "UTC"))
HTTP_TIMEOUT = float(os.getenv("GOOGLE_HTTP_TIMEOUT", "10"))

CONFIRMATION_COLUMN = "D"
DATE_COLUMN = "F"
TIME_COLUMN = "G"


def build_updates(guests: Sequence[GuestRow], attending: bool, at: datetime, tab: str = SHEET_TAB) -> List[Dict]:
    """Rangos A1 + valores para cada invitado (3 celdas por fila)."""
    local = at.replace(tzinfo=ZoneInfo("UTC")).astimezone(SHEET_TZ) if at.tzinfo is None else at.astimezone(SHEET_TZ)
    date_str = local.strftime("%m/%d/%Y")
    time_str = local.strftime("%H:%M")
    text = confirmation_text(attending)

    updates: List[Dict] = []
    for guest in guests:
        row = guest.sheet_row
        for column, value in ((CONFIRMATION_COLUMN, text), (DATE_COLUMN, date_str), (TIME_COLUMN, time_str)):
            updates.append({"range": f"{tab}!{column}{row}", "majorDimension": "ROWS", "values": [[value]]})
    return updates


class GoogleSheetsRsvpStore:
    name = "google-sheets"

    def __init__(self, sheet_id: str, *, token_provider: Optional[GoogleTokenProvider] = None,
                 session: Optional[requests.Session] = None, tab: str = SHEET_TAB):
        self.sheet_id = sheet_id
        self.tab = tab
        self.session = session or requests.Session()
        self.tokens = token_provider or GoogleTokenProvider(session=self.session)

    def save(self, guests: Sequence[GuestRow], attending: bool, client_language: str, at: datetime) -> None:
        updates = build_updates(guests, attending, at, tab=self.tab)
        try:
            token = self.tokens.get_token()
        except ServiceAccountError as e:
            raise StorageFailed(detail=str(e)) from e

        url = f"{SHEETS_API}/{self.sheet_id}/values:batchUpdate"
        body = {"valueInputOption": "USER_ENTERED", "data": updates}
        try:
            resp = self.session.post(
                url,
                json=body,
                headers={"Authorization": f"Bearer {token}"},
                timeout=HTTP_TIMEOUT,
            )
        except requests.RequestException as e:
            raise StorageFailed(detail=f"sheets request failed: {e}") from e

        if resp.status_code != 200:
            logger.error("[SHEETS] batchUpdate HTTP {}: {}", resp.status_code, resp.text[:300])
            raise StorageFailed(detail=f"sheets HTTP {resp.status_code}")

        logger.info("[SHEETS] {} celda(s) actualizadas en {} fila(s)", len(updates), len(guests))

# rsvp_app/session.py

# =================================================================================
# 🧭 SESIÓN DEL INVITADO (cliente de la API + máquina de estados)
# ---------------------------------------------------------------------------------
# Reproduce el recorrido del sitio sin navegador:
#
#   Idle ──search──▶ Searched ──select──▶ Selected ──attendance──▶ AttendanceChosen
#                                                                        │ submit
#                                         Confirmed ◀──── ok ──── Submitted
#
# - Una búsqueda nueva desde cualquier estado (salvo Submitted) reinicia la
#   selección: Searched si hubo resultados, Idle si no.
# - StorageFailed devuelve a AttendanceChosen (se puede reintentar tal cual).
# - ValidationFailed devuelve a Idle: hay que buscar de nuevo.
# - Se usa desde scripts y en los tests de aceptación (acepta un TestClient).
# =================================================================================

import enum
import uuid
from typing import Any, Dict, Iterable, List, Optional

import requests
from loguru import logger

from rsvp_app.errors import RateLimited, RsvpError, SourceUnavailable, StorageFailed, ValidationFailed


class RsvpStage(str, enum.Enum):
    IDLE = "idle"
    SEARCHED = "searched"
    SELECTED = "selected"
    ATTENDANCE_CHOSEN = "attendance_chosen"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"


class InvalidTransition(RuntimeError):
    """Acción no permitida en el estado actual de la sesión."""


# ---------------------------------------------------------------------------------
# 🌐 Cliente HTTP
# ---------------------------------------------------------------------------------
def _error_from_response(resp) -> RsvpError:
    try:
        data = resp.json()
    except ValueError:
        data = {}
    code = data.get("error")
    message = data.get("message") or f"HTTP {resp.status_code}"
    if code == "rate_limited" or resp.status_code == 429:
        return RateLimited(message, limit=int(data.get("limit") or 0),
                           retry_after=int(resp.headers.get("retry-after") or 0))
    if code == "source_unavailable" or resp.status_code == 503:
        return SourceUnavailable(message)
    if code == "validation_failed" or resp.status_code in (400, 422):
        return ValidationFailed(message, invalid_row_indexes=data.get("invalidRowIndexes"))
    if code == "storage_failed":
        return StorageFailed(message)
    return RsvpError(message, detail=f"HTTP {resp.status_code}")


class RsvpClient:
    """Cliente mínimo de la API. `http` puede ser un requests.Session o un TestClient."""

    def __init__(self, base_url: str = "", *, http=None, client_id: Optional[str] = None,
                 language: Optional[str] = None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.client_id = client_id or uuid.uuid4().hex       # Igual que el id que guarda el navegador.
        self.language = language
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"X-Client-Id": self.client_id}
        if self.language:
            headers["Accept-Language"] = self.language
        return headers

    def _kwargs(self) -> Dict[str, Any]:
        # TestClient no acepta timeout por petición; requests sí.
        kwargs: Dict[str, Any] = {"headers": self._headers()}
        if isinstance(self.http, requests.Session):
            kwargs["timeout"] = self.timeout
        return kwargs

    def _check(self, resp) -> Dict[str, Any]:
        if resp.status_code != 200:
            raise _error_from_response(resp)
        return resp.json()

    def search(self, text: str) -> Dict[str, Any]:
        resp = self.http.post(f"{self.base_url}/api/guests/search", json={"searchQuery": text}, **self._kwargs())
        return self._check(resp)

    def quota(self) -> Dict[str, Any]:
        return self._check(self.http.get(f"{self.base_url}/api/guests/search/quota", **self._kwargs()))

    def submit(self, row_indexes: List[int], attending: bool, client_language: str) -> Dict[str, Any]:
        body = {"selectedRowIndexes": list(row_indexes), "attending": attending, "clientLanguage": client_language}
        return self._check(self.http.post(f"{self.base_url}/api/rsvp", json=body, **self._kwargs()))


# ---------------------------------------------------------------------------------
# 🧭 Máquina de estados
# ---------------------------------------------------------------------------------
class RsvpSession:
    def __init__(self, client: RsvpClient):
        self.client = client
        self.stage = RsvpStage.IDLE
        self.results: List[Dict[str, Any]] = []
        self.search_language: str = "en"
        self.remaining_searches: Optional[int] = None
        self.selected: List[int] = []
        self.attending: Optional[bool] = None
        self.confirmation: Optional[Dict[str, Any]] = None

    def _require(self, *stages: RsvpStage) -> None:
        if self.stage not in stages:
            allowed = ", ".join(s.value for s in stages)
            raise InvalidTransition(f"Not allowed in stage '{self.stage.value}' (expected: {allowed})")

    def _reset_choice(self) -> None:
        self.selected = []
        self.attending = None
        self.confirmation = None

    # --- Búsqueda ---
    def refresh_quota(self) -> Optional[int]:
        self.remaining_searches = self.client.quota().get("remaining")
        return self.remaining_searches

    def search(self, text: str) -> List[Dict[str, Any]]:
        if self.stage == RsvpStage.SUBMITTED:
            raise InvalidTransition("A submission is in progress")
        try:
            data = self.client.search(text)
        except RateLimited:
            self.remaining_searches = 0
            raise
        self.results = list(data.get("guests") or [])
        self.search_language = data.get("searchLanguage") or "en"
        rate = data.get("rateLimit") or {}
        if "remaining" in rate:
            self.remaining_searches = rate["remaining"]
        self._reset_choice()
        self.stage = RsvpStage.SEARCHED if self.results else RsvpStage.IDLE
        logger.debug("[SESSION] '{}' → {} resultado(s), quedan {}", text, len(self.results), self.remaining_searches)
        return self.results

    # --- Selección ---
    @property
    def result_rows(self) -> List[int]:
        return [g["rowIndex"] for g in self.results]

    def select(self, row_indexes: Iterable[int]) -> List[int]:
        self._require(RsvpStage.SEARCHED, RsvpStage.SELECTED, RsvpStage.ATTENDANCE_CHOSEN)
        chosen: List[int] = []
        for idx in row_indexes:
            if idx not in chosen:
                chosen.append(idx)
        if not chosen:
            raise InvalidTransition("Select at least one guest")
        unknown = [i for i in chosen if i not in self.result_rows]
        if unknown:
            raise InvalidTransition(f"Rows not in the current results: {unknown}")
        self.selected = chosen
        self.attending = None
        self.stage = RsvpStage.SELECTED
        return self.selected

    def select_family(self, row_index: int) -> List[int]:
        """Selecciona a todo el grupo familiar del invitado (solo a él si no tiene grupo)."""
        self._require(RsvpStage.SEARCHED, RsvpStage.SELECTED, RsvpStage.ATTENDANCE_CHOSEN)
        anchor = next((g for g in self.results if g["rowIndex"] == row_index), None)
        if anchor is None:
            raise InvalidTransition(f"Row {row_index} is not in the current results")
        group = anchor.get("familyGroup") or ""
        if not group:
            return self.select([row_index])
        members = [g["rowIndex"] for g in self.results if g.get("familyGroup") == group]
        # El invitado elegido va primero: su mesa es la que se muestra.
        return self.select([row_index] + [m for m in members if m != row_index])

    def clear_selection(self) -> None:
        self._require(RsvpStage.SELECTED, RsvpStage.ATTENDANCE_CHOSEN)
        self._reset_choice()
        self.stage = RsvpStage.SEARCHED

    # --- Asistencia y envío ---
    def choose_attendance(self, attending: bool) -> None:
        self._require(RsvpStage.SELECTED, RsvpStage.ATTENDANCE_CHOSEN)
        self.attending = bool(attending)
        self.stage = RsvpStage.ATTENDANCE_CHOSEN

    def submit(self) -> Dict[str, Any]:
        self._require(RsvpStage.ATTENDANCE_CHOSEN)
        self.stage = RsvpStage.SUBMITTED
        try:
            data = self.client.submit(self.selected, self.attending, self.search_language)
        except ValidationFailed:
            self.results = []
            self._reset_choice()
            self.stage = RsvpStage.IDLE
            raise
        except (RsvpError, requests.RequestException):
            self.stage = RsvpStage.ATTENDANCE_CHOSEN
            raise
        self.confirmation = data
        self.stage = RsvpStage.CONFIRMED
        return data

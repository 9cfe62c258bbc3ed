# rsvp_app/submission.py

# =================================================================================
# 💌 HANDLER DE ENVÍOS RSVP
# ---------------------------------------------------------------------------------
# 1) Valida: al menos un invitado, asistencia elegida, y TODOS los row_index
#    existen en el directorio vigente. Un solo índice inválido → nada se escribe.
# 2) Serializa la escritura por fila (locks ordenados → sin deadlocks).
# 3) Persiste la decisión por invitado (sobrescribe al reenviar).
# 4) Arma la confirmación en el idioma del cliente con la mesa del PRIMER invitado.
# =================================================================================

import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from loguru import logger

from rsvp_app.directory.builder import GuestDirectory, GuestRow
from rsvp_app.errors import RsvpError, StorageFailed, ValidationFailed
from rsvp_app.utils.i18n import format_number, join_names, resolve_lang, t


@dataclass(frozen=True)
class RsvpSubmission:
    selected_row_indexes: Sequence[int]           # Orden del cliente: el primero define la mesa.
    attending: Optional[bool]
    client_language: str = "en"


@dataclass(frozen=True)
class RsvpConfirmation:
    thank_you_message: str
    table_number: Optional[str]
    guests: Sequence[GuestRow] = ()
    attending: bool = False

    def to_payload(self) -> dict:
        return {"success": True, "tableNumber": self.table_number, "message": self.thank_you_message}


# ---------------------------------------------------------------------------------
# 🔒 Locks por fila
# ---------------------------------------------------------------------------------
class RowLocks:
    def __init__(self):
        self._locks: Dict[int, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, row_index: int) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(row_index, threading.Lock())

    @contextmanager
    def hold(self, row_indexes: Iterable[int]) -> Iterator[None]:
        """Adquiere los locks en orden ascendente y los libera al salir."""
        with ExitStack() as stack:
            for idx in sorted(set(row_indexes)):
                stack.enter_context(self._lock_for(idx))
            yield


# ---------------------------------------------------------------------------------
# 🧾 Handler
# ---------------------------------------------------------------------------------
def _dedupe_keep_order(values: Iterable[int]) -> List[int]:
    seen, ordered = set(), []
    for v in values:
        if v not in seen:
            seen.add(v)
            ordered.append(v)
    return ordered


def build_confirmation(guests: Sequence[GuestRow], attending: bool, lang: str) -> RsvpConfirmation:
    """Mensaje localizado; la mesa sale del primer invitado seleccionado."""
    first = guests[0]
    table = first.table_number or None
    display_names = [
        (g.arabic_name or g.english_name) if lang == "ar" else (g.english_name or g.arabic_name)
        for g in guests
    ]
    names = join_names(display_names, lang)

    if attending:
        message = t("rsvp.thanks_attending", lang, names=names)
        if table:
            message = f"{message} {t('rsvp.table', lang, table=format_number(table, lang))}"
    else:
        message = t("rsvp.thanks_declined", lang, names=names)

    return RsvpConfirmation(thank_you_message=message, table_number=table, guests=tuple(guests), attending=attending)


class RsvpSubmissionHandler:
    def __init__(
        self,
        store,
        directory_provider: Callable[[], GuestDirectory],
        *,
        clock: Callable[[], datetime] = datetime.utcnow,
        row_locks: Optional[RowLocks] = None,
    ):
        self.store = store
        self._directory = directory_provider
        self._clock = clock
        self._row_locks = row_locks or RowLocks()

    def validate(self, submission: RsvpSubmission, directory: GuestDirectory) -> List[GuestRow]:
        lang = resolve_lang(submission.client_language)
        indexes = _dedupe_keep_order(submission.selected_row_indexes or [])
        if not indexes:
            raise ValidationFailed(t("rsvp.no_selection", lang))
        if submission.attending is None:
            raise ValidationFailed(t("rsvp.missing_attendance", lang))

        invalid = [i for i in indexes if directory.get(i) is None]
        if invalid:
            logger.warning("[RSVP] row_index inexistentes en el directorio vigente: {}", invalid)
            raise ValidationFailed(t("rsvp.invalid_guests", lang), invalid_row_indexes=invalid)
        return [directory.get(i) for i in indexes]

    def submit(self, submission: RsvpSubmission) -> RsvpConfirmation:
        lang = resolve_lang(submission.client_language)
        guests = self.validate(submission, self._directory())      # SourceUnavailable se propaga tal cual.
        attending = bool(submission.attending)

        with self._row_locks.hold(g.row_index for g in guests):
            try:
                self.store.save(guests, attending, lang, self._clock())
            except StorageFailed as e:
                logger.error("[RSVP] Store {} falló: {}", getattr(self.store, "name", "?"), e.detail)
                raise StorageFailed(t("rsvp.storage_failed", lang), detail=e.detail) from e
            except RsvpError:
                raise
            except Exception as e:
                logger.exception("[RSVP] Error inesperado del store {}", getattr(self.store, "name", "?"))
                raise StorageFailed(t("rsvp.storage_failed", lang), detail=str(e)) from e

        logger.info("RSVP: {} | rows={} | lang={} | store={}",
                    "confirmado" if attending else "declinado",
                    [g.row_index for g in guests], lang, getattr(self.store, "name", "?"))
        return build_confirmation(guests, attending, lang)

# rsvp_app/crud/rsvp_crud.py                                                  # Ruta del archivo dentro del proyecto.

# =================================================================================
# 🧩 CRUD de respuestas RSVP (tabla rsvp_responses)
# - SqlRsvpStore.save(): upsert por row_index de TODO el lote en una transacción.
# - Reenviar para el mismo invitado sobrescribe (idempotente), nunca duplica.
# - Cualquier error de BD → StorageFailed (reintentable) y rollback completo.
# =================================================================================

from datetime import datetime                    # Sello de tiempo de la respuesta.
from typing import Callable, List, Optional, Sequence

from loguru import logger                        # Logger para trazas internas del CRUD.
from sqlalchemy.exc import SQLAlchemyError       # Errores de BD a traducir en StorageFailed.
from sqlalchemy.orm import Session               # Sesión de SQLAlchemy.

from rsvp_app.db import session_scope
from rsvp_app.directory.builder import GuestRow
from rsvp_app.errors import StorageFailed
from rsvp_app.models import (
    CONFIRMATION_ATTENDING,
    CONFIRMATION_DECLINED,
    LanguageEnum,
    RsvpResponse,
)


def confirmation_text(attending: bool) -> str:
    """Texto que se escribe en la columna de confirmación."""
    return CONFIRMATION_ATTENDING if attending else CONFIRMATION_DECLINED


# ---------------------------------------------------------------------------------
# 🔎 Helpers de lectura
# ---------------------------------------------------------------------------------
def get_by_row_index(db: Session, row_index: int) -> Optional[RsvpResponse]:
    """Devuelve la respuesta guardada para la fila, o None si aún no respondió."""
    return db.get(RsvpResponse, row_index)


def list_responses(db: Session, *, attending: Optional[bool] = None) -> List[RsvpResponse]:
    """Lista respuestas ordenadas por fila de la hoja; filtra por asistencia si se pide."""
    query = db.query(RsvpResponse)
    if attending is not None:
        query = query.filter(RsvpResponse.attending == attending)
    return query.order_by(RsvpResponse.row_index).all()


# ---------------------------------------------------------------------------------
# 💾 Store SQL usado por el handler de envíos
# ---------------------------------------------------------------------------------
class SqlRsvpStore:
    name = "sql"

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def save(self, guests: Sequence[GuestRow], attending: bool, client_language: str, at: datetime) -> None:
        try:
            with session_scope(self._session_factory) as db:            # Todo el lote o nada.
                for guest in guests:
                    row = db.get(RsvpResponse, guest.row_index)
                    if row is None:
                        row = RsvpResponse(row_index=guest.row_index)
                        db.add(row)
                    row.english_name = guest.english_name
                    row.arabic_name = guest.arabic_name
                    row.family_group = guest.family_group or None
                    row.attending = attending
                    row.confirmation_text = confirmation_text(attending)
                    row.client_language = LanguageEnum(client_language)
                    row.responded_at = at
        except SQLAlchemyError as e:
            raise StorageFailed(detail=f"database error: {e}") from e
        logger.debug("CRUD/save → {} fila(s) guardadas (attending={})", len(guests), attending)

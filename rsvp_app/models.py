# rsvp_app/models.py  # Modelos ORM persistidos por el motor de RSVP.

# =================================================================================
# 🏛️ DEFINICIÓN DE LOS MODELOS DE LA BASE DE DATOS (ORM)
# ---------------------------------------------------------------------------------
# La lista de invitados NO vive aquí: es la hoja exportada (directorio en memoria).
# Aquí solo se guarda lo que el sitio escribe:
# - rsvp_responses: una fila por invitado (row_index), sobrescrita al reenviar.
# - search_quotas: cupo diario de búsquedas por cliente.
# =================================================================================

from datetime import datetime
import enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    Enum as SQLAlchemyEnum,
    func,
)

from rsvp_app.db import Base


# 🗂️ ENUMS PARA CONSISTENCIA DE DATOS
# ---------------------------------------------------------------------------------
class LanguageEnum(str, enum.Enum):  # Idiomas del sitio.
    en = "en"  # Inglés.
    ar = "ar"  # Árabe.


# Texto que se escribe en la columna "Confirmación" de la hoja (mismo valor en la tabla).
CONFIRMATION_ATTENDING = "Yes, Attending"
CONFIRMATION_DECLINED = "Regretfully Decline"


# 💌 RESPUESTAS RSVP (TABLA 'rsvp_responses')
# ---------------------------------------------------------------------------------
class RsvpResponse(Base):
    __tablename__ = "rsvp_responses"

    # --- Identidad: la fila del invitado en la hoja ---
    row_index = Column(Integer, primary_key=True, autoincrement=False)

    # --- Copia de los datos del invitado al momento de responder ---
    english_name = Column(String(200), nullable=False, default="")
    arabic_name = Column(String(200), nullable=False, default="")
    family_group = Column(String(200), nullable=True, index=True)

    # --- Respuesta ---
    attending = Column(Boolean, nullable=False)
    confirmation_text = Column(String(40), nullable=False)
    client_language = Column(SQLAlchemyEnum(LanguageEnum), nullable=False, default=LanguageEnum.en)
    responded_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # --- Auditoría ---
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# 🚦 CUPO DE BÚSQUEDAS (TABLA 'search_quotas')
# ---------------------------------------------------------------------------------
class SearchQuota(Base):
    __tablename__ = "search_quotas"

    client_id = Column(String(128), primary_key=True)
    count = Column(Integer, nullable=False, default=0)
    window_start = Column(DateTime, nullable=False)

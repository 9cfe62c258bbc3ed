# rsvp_app/services.py

# =================================================================================
# 🧩 SERVICIOS COMPARTIDOS (una instancia por proceso)
# ---------------------------------------------------------------------------------
# - Caché del directorio, limitador de búsquedas, store de RSVP y handler.
# - Se crean la primera vez que se piden y se exponen como dependencias FastAPI;
#   los tests las sustituyen con app.dependency_overrides.
# - Backends elegidos por .env:
#     RATE_LIMIT_BACKEND = sql | memory      (default: sql)
#     RSVP_STORE         = sql | sheets      (default: sql)
# =================================================================================

import os
import threading
from typing import Optional

from loguru import logger

from rsvp_app.db import SessionLocal
from rsvp_app.directory.cache import DirectoryCache
from rsvp_app.directory.source import GUEST_SHEET_ID, layout_from_env, source_from_env
from rsvp_app.rate_limit import MemoryQuotaStore, SearchRateLimiter, SqlQuotaStore
from rsvp_app.submission import RsvpSubmissionHandler

RATE_LIMIT_BACKEND = os.getenv("RATE_LIMIT_BACKEND", "sql").strip().lower()
RSVP_STORE = os.getenv("RSVP_STORE", "sql").strip().lower()

_lock = threading.Lock()
_directory_cache: Optional[DirectoryCache] = None
_rate_limiter: Optional[SearchRateLimiter] = None
_rsvp_store = None
_submission_handler: Optional[RsvpSubmissionHandler] = None


def get_directory_cache() -> DirectoryCache:
    global _directory_cache
    with _lock:
        if _directory_cache is None:
            _directory_cache = DirectoryCache(source_from_env(), layout=layout_from_env())
        return _directory_cache


def get_rate_limiter() -> SearchRateLimiter:
    global _rate_limiter
    with _lock:
        if _rate_limiter is None:
            if RATE_LIMIT_BACKEND == "memory":
                store = MemoryQuotaStore()
            else:
                store = SqlQuotaStore(SessionLocal)
            _rate_limiter = SearchRateLimiter(store)
            logger.info("[BOOT] Rate limit de búsqueda: {}/{}s (backend={})",
                        _rate_limiter.max_searches, int(_rate_limiter.window.total_seconds()), RATE_LIMIT_BACKEND)
        return _rate_limiter


def _build_rsvp_store():
    if RSVP_STORE == "sheets":
        if not GUEST_SHEET_ID:
            raise RuntimeError("RSVP_STORE=sheets requiere GUEST_SHEET_ID en .env")
        from rsvp_app.sheets_writer import GoogleSheetsRsvpStore   # Solo se carga si se usa.
        return GoogleSheetsRsvpStore(GUEST_SHEET_ID)
    from rsvp_app.crud.rsvp_crud import SqlRsvpStore
    return SqlRsvpStore(SessionLocal)


def get_rsvp_store():
    global _rsvp_store
    with _lock:
        if _rsvp_store is None:
            _rsvp_store = _build_rsvp_store()
            logger.info("[BOOT] Store de RSVP → {}", _rsvp_store.name)
        return _rsvp_store


def get_submission_handler() -> RsvpSubmissionHandler:
    global _submission_handler
    store = get_rsvp_store()
    cache = get_directory_cache()
    with _lock:
        if _submission_handler is None:
            _submission_handler = RsvpSubmissionHandler(store, cache.get)
        return _submission_handler


def reset_services() -> None:
    """Olvida las instancias creadas (tests y recarga de configuración)."""
    global _directory_cache, _rate_limiter, _rsvp_store, _submission_handler
    with _lock:
        _directory_cache = None
        _rate_limiter = None
        _rsvp_store = None
        _submission_handler = None

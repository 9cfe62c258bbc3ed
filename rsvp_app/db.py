# rsvp_app/db.py
# =================================================================================
# 🗄️ BASE DE DATOS: respuestas RSVP + cupo de búsquedas
# ---------------------------------------------------------------------------------
# - resolve_database_url(): decide la URL a partir de DATABASE_URL / FORCE_DB.
# - make_engine(): engine con ajustes por motor. En SQLite activa WAL y busy_timeout
#   porque varios hilos del threadpool escriben search_quotas a la vez.
# - session_scope(): transacción corta compartida por SqlQuotaStore y SqlRsvpStore.
# =================================================================================

import os
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

SQLITE_BUSY_TIMEOUT_MS = int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000"))   # Espera ante "database is locked".
_DEFAULT_SQLITE_FILE = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "rsvp.db"))


def resolve_database_url(raw: Optional[str] = None, force_db: Optional[str] = None) -> str:
    """
    DATABASE_URL efectiva. Con FORCE_DB=postgres (default) y sin URL se aborta:
    en producción nunca se cae a SQLite por error.
    """
    url = (os.getenv("DATABASE_URL", "") if raw is None else raw).strip()
    force = (os.getenv("FORCE_DB", "postgres") if force_db is None else force_db).strip().lower()

    if url.startswith("${{") and url.endswith("}}"):
        logger.warning("DATABASE_URL parece un placeholder sin resolver: {}", url)
        url = ""

    if not url:
        if force == "postgres":
            raise RuntimeError(
                "FATAL: DATABASE_URL no está disponible y FORCE_DB=postgres. "
                "Se aborta para evitar un fallback accidental a SQLite en producción."
            )
        logger.warning("DATABASE_URL está vacía. Usando SQLite local en {}", _DEFAULT_SQLITE_FILE)
        url = f"sqlite:///{_DEFAULT_SQLITE_FILE}"

    if url.startswith("postgres://"):                     # Esquema antiguo de algunos proveedores.
        url = "postgresql://" + url[len("postgres://"):]
    return url


def _sqlite_pragmas(dbapi_conn, _record) -> None:
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA journal_mode=WAL")
    cur.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    cur.close()


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # Las rutas síncronas de FastAPI corren en un threadpool → check_same_thread=False.
        eng = create_engine(url, connect_args={"check_same_thread": False}, pool_pre_ping=True)
        event.listen(eng, "connect", _sqlite_pragmas)
        return eng
    return create_engine(url, pool_pre_ping=True)


DATABASE_URL = resolve_database_url()
engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


@contextmanager
def session_scope(factory: Callable[[], Session] = SessionLocal) -> Iterator[Session]:
    """Una sesión = una transacción: commit al salir, rollback si algo falla."""
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db():
    """Dependencia de FastAPI (rutas de admin): sesión de solo lectura por petición."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def log_db_path_on_startup() -> None:
    """Motor y, en SQLite, ruta del archivo y modo de journal."""
    url = engine.url
    logger.info("DB driver in use → {}", url.drivername)
    if url.drivername != "sqlite":
        return
    try:
        with engine.connect() as conn:
            mode = conn.exec_driver_sql("PRAGMA journal_mode").scalar()
        logger.info("DB path → {} (journal_mode={})", url.database or "<memory>", mode)
    except Exception as e:
        logger.warning("No se pudo abrir la BD SQLite al arrancar: {}", e)

# rsvp_app/scheduler.py                                                                 # Nombre del archivo.

# ====================================================================================== # Separador visual.
# ⏰ REFRESCO PERIÓDICO DEL DIRECTORIO DE INVITADOS                                       # Título descriptivo.
# -------------------------------------------------------------------------------------- # Descripción.
# - Job en segundo plano (APScheduler BackgroundScheduler) dentro del proceso de la API. # Modo de ejecución.
# - Cada DIRECTORY_REFRESH_SECONDS descarga la hoja y reemplaza el snapshot.             # Frecuencia.
# - DIRECTORY_REFRESH_SECONDS=0 (default) lo desactiva: solo rige el TTL por petición.    # Desactivación.
# - Un fallo de la fuente se registra y se reintenta en la siguiente vuelta.             # Tolerancia.
# ====================================================================================== # Cierre encabezado.

import os                                                                                # Para leer variables de entorno.
from typing import Optional                                                              # Tipado.

from apscheduler.schedulers.background import BackgroundScheduler                        # Scheduler en hilo propio.
from loguru import logger                                                                # Logger principal.

from rsvp_app.directory.cache import DirectoryCache                                      # Caché a refrescar.
from rsvp_app.errors import SourceUnavailable                                            # Fallo esperado de la fuente.


def _env_int(name: str, default: int) -> int:                                             # Helper para leer enteros de entorno.
    try:                                                                                  # Intenta convertir a int.
        return int(os.getenv(name, str(default)))                                         # Devuelve el entero o default.
    except ValueError:                                                                    # Si no es entero...
        return default                                                                    # Devuelve default.


DIRECTORY_REFRESH_SECONDS = _env_int("DIRECTORY_REFRESH_SECONDS", 0)                      # 0 = desactivado.
SCHEDULER_LOG_FILE = os.getenv("SCHEDULER_LOG_FILE", "").strip()                          # Ruta opcional de log propio.

_scheduler: Optional[BackgroundScheduler] = None                                         # Instancia única por proceso.


def refresh_job(cache: DirectoryCache) -> bool:                                          # Una vuelta del job.
    """Reconstruye el snapshot; devuelve False si la fuente falló (sin propagar)."""
    try:
        snap = cache.refresh(force=True)                                                 # Descarga + build + swap.
    except SourceUnavailable as e:                                                       # La hoja no respondió.
        logger.warning("[SCHEDULER] Refresco fallido: {}", e.detail)                     # Se reintenta en la próxima vuelta.
        return False
    logger.info("[SCHEDULER] Snapshot #{} ({} invitados)", snap.generation, len(snap.directory))
    return True


def start_scheduler(cache: DirectoryCache, interval_seconds: int = DIRECTORY_REFRESH_SECONDS) -> Optional[BackgroundScheduler]:
    """Arranca el job si el intervalo es > 0. Idempotente."""
    global _scheduler
    if interval_seconds <= 0:                                                            # Desactivado por configuración.
        logger.info("[SCHEDULER] Refresco periódico desactivado (DIRECTORY_REFRESH_SECONDS=0).")
        return None
    if _scheduler is not None and _scheduler.running:                                    # Ya corriendo (p. ej. doble startup).
        return _scheduler

    if SCHEDULER_LOG_FILE:                                                               # Log a archivo con rotación.
        logger.add(SCHEDULER_LOG_FILE, rotation="1 week", retention="4 weeks", level="INFO",
                   filter=lambda record: "[SCHEDULER]" in record["message"])

    scheduler = BackgroundScheduler(timezone="UTC")                                      # Hilo daemon propio.
    scheduler.add_job(
        refresh_job,
        "interval",
        seconds=interval_seconds,
        args=[cache],
        id="directory_refresh",
        max_instances=1,                                                                 # Nunca dos refrescos a la vez.
        coalesce=True,                                                                   # Vueltas perdidas → una sola.
        replace_existing=True,
    )
    scheduler.start()
    _scheduler = scheduler
    logger.info("[SCHEDULER] Refresco del directorio cada {}s", interval_seconds)
    return scheduler


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("[SCHEDULER] Detenido.")
    _scheduler = None

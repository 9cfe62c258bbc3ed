# rsvp_app/directory/cache.py

# =================================================================================
# 🗃️ CACHÉ DEL DIRECTORIO (snapshot + single-flight)
# ---------------------------------------------------------------------------------
# - Guarda el último directorio construido y el instante en que se construyó.
# - Si el snapshot está vencido (TTL), UNA sola petición lo reconstruye; las
#   concurrentes esperan al lock y reutilizan el resultado recién construido.
# - El snapshot se reemplaza por asignación atómica: los lectores ven el viejo
#   o el nuevo completo, nunca uno a medias.
# - Si la reconstrucción falla se lanza SourceUnavailable (no se sirve un
#   snapshot vencido como si fuera actual).
# =================================================================================

import os
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from rsvp_app.directory.builder import DEFAULT_LAYOUT, GuestDirectory, SheetLayout
from rsvp_app.directory.source import load_directory

DIRECTORY_TTL_SECONDS = float(os.getenv("DIRECTORY_TTL_SECONDS", "60"))


@dataclass(frozen=True)
class DirectorySnapshot:
    directory: GuestDirectory
    built_at: float                     # Reloj monotónico del momento de construcción.
    generation: int                     # Contador de reconstrucciones (útil en logs y tests).


class DirectoryCache:
    def __init__(
        self,
        source,
        *,
        layout: SheetLayout = DEFAULT_LAYOUT,
        ttl_seconds: float = DIRECTORY_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        loader: Callable[..., GuestDirectory] = load_directory,
    ):
        self.source = source
        self.layout = layout
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._loader = loader
        self._snapshot: Optional[DirectorySnapshot] = None
        self._refresh_lock = threading.Lock()

    # --- Lectura ---
    @property
    def snapshot(self) -> Optional[DirectorySnapshot]:
        return self._snapshot

    def _is_fresh(self, snap: Optional[DirectorySnapshot]) -> bool:
        if snap is None:
            return False
        if self.ttl_seconds <= 0:                      # TTL 0 → reconstruir en cada petición.
            return False
        return (self._clock() - snap.built_at) < self.ttl_seconds

    def get(self) -> GuestDirectory:
        """Devuelve el directorio vigente, reconstruyéndolo si hace falta."""
        snap = self._snapshot
        if self._is_fresh(snap):
            return snap.directory
        return self.refresh(stale=snap).directory

    # --- Reconstrucción ---
    def refresh(self, *, force: bool = False, stale: Optional[DirectorySnapshot] = None) -> DirectorySnapshot:
        """
        Reconstruye el snapshot bajo lock. Si mientras se esperaba el lock otro hilo
        ya lo reconstruyó (el snapshot cambió respecto a `stale`), se reutiliza.
        Sin `stale` ni `force`, un snapshot existente se devuelve tal cual.
        """
        with self._refresh_lock:
            current = self._snapshot
            # Otro hilo reconstruyó mientras se esperaba el lock: se reutiliza aunque el TTL sea 0.
            if not force and current is not None and current is not stale:
                return current

            directory = self._loader(self.source, layout=self.layout)     # Puede lanzar SourceUnavailable.
            generation = (current.generation + 1) if current else 1
            new_snap = DirectorySnapshot(directory=directory, built_at=self._clock(), generation=generation)
            self._snapshot = new_snap                                      # Swap atómico de referencia.
            logger.debug("[DIRECTORY] Snapshot #{} listo ({} invitados)", generation, len(directory))
            return new_snap

    def invalidate(self) -> None:
        self._snapshot = None

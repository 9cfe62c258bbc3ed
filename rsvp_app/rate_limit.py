# rsvp_app/rate_limit.py

# =================================================================================
# 🚦 Cupo de búsquedas por cliente (ventana de 24 h)
# ---------------------------------------------------------------------------------
# - Política explícita: N búsquedas aceptadas por ventana por client_id.
# - La ventana arranca con la primera búsqueda y se reinicia cuando now - inicio >= ventana.
# - El almacenamiento es intercambiable: memoria (tests / un proceso) o SQL (persistente).
# - Es un freno de UX, NO un control de seguridad: borrar el estado simplemente lo reinicia.
# =================================================================================

import os
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

from loguru import logger
from sqlalchemy.orm import Session

from rsvp_app.db import session_scope
from rsvp_app.models import SearchQuota


def get_limits_from_env(prefix: str, default_max: int, default_window: int) -> tuple[int, int]:
    """Lee MAX y WINDOW en segundos desde env: {prefix}_MAX, {prefix}_WINDOW; aplica defaults si no están."""
    try:
        max_req = int(os.getenv(f"{prefix}_MAX", str(default_max)))
        window = int(os.getenv(f"{prefix}_WINDOW", str(default_window)))
    except ValueError:
        max_req, window = default_max, default_window
    return max_req, window


SEARCH_MAX, SEARCH_WINDOW = get_limits_from_env("SEARCH_RL", default_max=5, default_window=24 * 3600)


# ---------------------------------------------------------------------------------
# 📦 Estado y decisión
# ---------------------------------------------------------------------------------
@dataclass(frozen=True)
class RateLimitState:
    count: int                                          # Búsquedas aceptadas dentro de la ventana.
    window_start: datetime                              # Inicio de la ventana actual (UTC naive).


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    remaining: int
    limit: int
    reset_at: Optional[datetime] = None                 # Cuándo vuelve a haber cupo (None si nunca buscó).
    retry_after_seconds: int = 0                        # Calculado con el mismo reloj que reset_at.


# Una mutación recibe el estado actual (o None) y devuelve (estado_nuevo | None, resultado).
Mutation = Callable[[Optional[RateLimitState]], Tuple[Optional[RateLimitState], QuotaDecision]]


# ---------------------------------------------------------------------------------
# 🧠 Backend en memoria
# ---------------------------------------------------------------------------------
class MemoryQuotaStore:
    """Diccionario en proceso con un lock por cliente."""

    def __init__(self):
        self._states: Dict[str, RateLimitState] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, client_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(client_id, threading.Lock())

    def apply(self, client_id: str, mutation: Mutation) -> QuotaDecision:
        # Read-increment-write atómico por cliente.
        with self.lock_for(client_id):
            new_state, decision = mutation(self._states.get(client_id))
            if new_state is not None:
                self._states[client_id] = new_state
            return decision

    def clear(self) -> None:
        with self._guard:
            self._states.clear()


# ---------------------------------------------------------------------------------
# 🗄️ Backend SQL (sobrevive a reinicios y comparte estado entre workers)
# ---------------------------------------------------------------------------------
class SqlQuotaStore:
    """Guarda el estado en search_quotas; cada mutación va en su propia transacción."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._memory_locks = MemoryQuotaStore()         # Serializa dentro del proceso.

    def apply(self, client_id: str, mutation: Mutation) -> QuotaDecision:
        with self._memory_locks.lock_for(client_id), session_scope(self._session_factory) as db:
            # Postgres bloquea la fila; en SQLite el busy_timeout serializa a los otros procesos.
            row = (
                db.query(SearchQuota)
                .filter(SearchQuota.client_id == client_id)
                .with_for_update()
                .first()
            )
            current = RateLimitState(row.count, row.window_start) if row else None
            new_state, decision = mutation(current)
            if new_state is not None:
                if row is None:
                    row = SearchQuota(client_id=client_id)
                    db.add(row)
                row.count = new_state.count
                row.window_start = new_state.window_start
            return decision


# ---------------------------------------------------------------------------------
# 📏 Política
# ---------------------------------------------------------------------------------
class SearchRateLimiter:
    """
    Política de cupo: `max_searches` aceptadas por ventana de `window` por cliente.
    El reloj y el almacenamiento se inyectan (tests con reloj falso y memoria).
    """

    def __init__(
        self,
        store=None,
        *,
        max_searches: int = SEARCH_MAX,
        window: timedelta = timedelta(seconds=SEARCH_WINDOW),
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store or MemoryQuotaStore()
        self.max_searches = max_searches
        self.window = window
        self._clock = clock

    def _expired(self, state: Optional[RateLimitState], now: datetime) -> bool:
        return state is None or (now - state.window_start) >= self.window

    def _decision(self, allowed: bool, remaining: int, reset_at: Optional[datetime], now: datetime) -> QuotaDecision:
        retry_after = 0 if reset_at is None else max(0, int((reset_at - now).total_seconds()))
        return QuotaDecision(allowed, remaining, self.max_searches, reset_at, retry_after)

    def check_and_consume(self, client_id: str) -> QuotaDecision:
        """Acepta y descuenta una búsqueda si queda cupo; si no, deniega con remaining=0."""
        if self.max_searches <= 0:                      # Límite 0 → sin rate-limit.
            return QuotaDecision(allowed=True, remaining=0, limit=0)

        def mutation(state: Optional[RateLimitState]):
            now = self._clock()
            if self._expired(state, now):
                state = RateLimitState(count=0, window_start=now)
            reset_at = state.window_start + self.window
            if state.count < self.max_searches:
                state = RateLimitState(count=state.count + 1, window_start=state.window_start)
                return state, self._decision(True, self.max_searches - state.count, reset_at, now)
            return None, self._decision(False, 0, reset_at, now)

        decision = self.store.apply(client_id, mutation)
        if not decision.allowed:
            logger.warning("Search quota exhausted for client='{}' ({}/{} per {})",
                           client_id, self.max_searches, self.max_searches, self.window)
        return decision

    def peek(self, client_id: str) -> QuotaDecision:
        """Cupo restante SIN consumir (indicador 'búsquedas restantes hoy')."""
        if self.max_searches <= 0:
            return QuotaDecision(allowed=True, remaining=0, limit=0)

        def mutation(state: Optional[RateLimitState]):
            now = self._clock()
            if self._expired(state, now):
                return None, self._decision(True, self.max_searches, None, now)
            remaining = max(0, self.max_searches - state.count)
            return None, self._decision(remaining > 0, remaining, state.window_start + self.window, now)

        return self.store.apply(client_id, mutation)

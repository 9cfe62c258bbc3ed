# rsvp_app/errors.py

# =================================================================================
# 🚨 TAXONOMÍA DE ERRORES DEL MOTOR DE RSVP
# ---------------------------------------------------------------------------------
# - Cada error conoce su código máquina y el status HTTP con el que sale.
# - main.py registra un handler único que los traduce a JSON {error, message}.
# - ParseDegraded NO es una excepción: el parser se recupera solo y lo registra.
# =================================================================================

from typing import Optional


class RsvpError(Exception):
    """Base de los errores de dominio que cruzan la frontera HTTP."""

    code: str = "internal_error"       # Código máquina expuesto en el campo 'error'.
    status_code: int = 500             # Status HTTP con el que se responde.
    retryable: bool = False            # Si el cliente puede reintentar sin cambiar nada.

    def __init__(self, message: str = "", *, detail: Optional[str] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.detail = detail           # Información interna (solo logs, nunca al cliente).

    def to_payload(self) -> dict:
        payload = {"error": self.code, "message": self.message}
        if self.retryable:
            payload["retryable"] = True
        return payload


class SourceUnavailable(RsvpError):
    """La lista de invitados no se pudo descargar o no se pudo interpretar."""

    code = "source_unavailable"
    status_code = 503
    retryable = True

    def __init__(self, message: str = "", *, detail: Optional[str] = None, directory=None):
        super().__init__(message or "The guest list is temporarily unavailable.", detail=detail)
        # El builder entrega un directorio vacío junto con la señal (nunca uno parcial).
        self.directory = directory


class RateLimited(RsvpError):
    code = "rate_limited"
    status_code = 429

    def __init__(self, message: str = "", *, limit: int = 0, retry_after: int = 0):
        super().__init__(message or f"You have reached the daily search limit of {limit} searches. Please try again tomorrow.")
        self.limit = limit
        self.retry_after = retry_after

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload.update({"rateLimited": True, "remaining": 0, "limit": self.limit})
        return payload


class ValidationFailed(RsvpError):
    code = "validation_failed"
    status_code = 400

    def __init__(self, message: str = "", *, invalid_row_indexes=None):
        super().__init__(message or "The RSVP could not be validated.")
        self.invalid_row_indexes = sorted(invalid_row_indexes or [])

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.invalid_row_indexes:
            payload["invalidRowIndexes"] = self.invalid_row_indexes
        return payload


class StorageFailed(RsvpError):
    code = "storage_failed"
    status_code = 500
    retryable = True

    def __init__(self, message: str = "", *, detail: Optional[str] = None):
        super().__init__(message or "We could not save your RSVP. Please try again.", detail=detail)

# rsvp_app/core/security.py
# Protección de las rutas /api/admin con la cabecera x-admin-key.
import hmac
import os

from fastapi import Depends, HTTPException, status
from fastapi.security.api_key import APIKeyHeader

_admin_key_header = APIKeyHeader(name="x-admin-key", auto_error=False)


def require_admin(api_key: str = Depends(_admin_key_header)) -> None:
    # Sin ADMIN_API_KEY configurada, las rutas de admin quedan cerradas.
    expected = os.getenv("ADMIN_API_KEY", "")
    if not expected or not api_key or not hmac.compare_digest(api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing admin key",
        )

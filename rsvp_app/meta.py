# rsvp_app/meta.py  # Router de metadatos para el frontend.

from fastapi import APIRouter, Depends  # Enrutador y dependencias de FastAPI.
from typing import Any, Dict  # Tipado para claridad en la respuesta.

from rsvp_app.rate_limit import SearchRateLimiter
from rsvp_app.services import get_rate_limiter
from rsvp_app.utils.i18n import DEFAULT_LANG, SUPPORTED_LANGS

router = APIRouter(prefix="/api/meta", tags=["meta"])  # Crea un router con prefijo /api/meta.


@router.get("/options")
def get_meta_options(limiter: SearchRateLimiter = Depends(get_rate_limiter)) -> Dict[str, Any]:
    """
    Devuelve los idiomas soportados y la política de búsqueda para que el
    frontend pinte el indicador de 'búsquedas restantes' sin adivinar.
    """
    return {
        "languages": sorted(SUPPORTED_LANGS),
        "defaultLanguage": DEFAULT_LANG,
        "search": {
            "limit": limiter.max_searches,
            "windowSeconds": int(limiter.window.total_seconds()),
        },
        "attendance": ["attending", "declined"],  # Códigos neutros; el front los traduce.
    }

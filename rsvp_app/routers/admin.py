# rsvp_app/routers/admin.py
# =============================================================================
# 👑 Rutas de administración
# - Protegido con API Key mediante dependencia `require_admin`
# - POST /directory/refresh: reconstruye el directorio ya (tras editar la hoja)
# - GET  /responses: respuestas RSVP guardadas (filtro opcional por asistencia)
# =============================================================================

from typing import List, Optional                                  # Tipos para anotaciones.

from fastapi import APIRouter, Depends, Query                      # Router, dependencias y query params.
from loguru import logger                                          # Logger.
from sqlalchemy.orm import Session                                 # Tipo de sesión de SQLAlchemy.

import rsvp_app.schemas as schemas                                 # Módulo completo de schemas.
from rsvp_app.core.security import require_admin                   # Valida x-admin-key == ADMIN_API_KEY.
from rsvp_app.crud import rsvp_crud                                # Lecturas de rsvp_responses.
from rsvp_app.db import get_db                                     # Proveedor de Session por request.
from rsvp_app.directory.cache import DirectoryCache                # Caché del directorio.
from rsvp_app.services import get_directory_cache                  # Instancia compartida.

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],                         # Todas las rutas exigen la API key.
)


@router.post("/directory/refresh", response_model=schemas.DirectoryRefreshResult)
def refresh_directory(cache: DirectoryCache = Depends(get_directory_cache)):
    """Fuerza la descarga de la hoja. Si falla, responde 503 y el snapshot anterior se conserva."""
    snap = cache.refresh(force=True)
    logger.info("[ADMIN] Directorio refrescado → snapshot #{} ({} invitados)", snap.generation, len(snap.directory))
    return {
        "guests": len(snap.directory),
        "families": len(snap.directory.families),
        "generation": snap.generation,
    }


@router.get("/responses", response_model=List[schemas.RsvpRecordOut])
def list_responses(
    attending: Optional[bool] = Query(default=None),
    db: Session = Depends(get_db),
):
    return rsvp_crud.list_responses(db, attending=attending)

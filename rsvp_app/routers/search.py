# rsvp_app/routers/search.py                                                       # Ruta y nombre del archivo del router de búsqueda.

# =================================================================================  # Separador visual para la cabecera del módulo.
# 🔎 ROUTER DE BÚSQUEDA DE INVITADOS                                                 # Describe el propósito del módulo.
# ---------------------------------------------------------------------------------  # Línea divisoria.
# - Búsqueda bilingüe (inglés/árabe) con expansión a toda la familia.                # Funcionalidad principal.
# - Cupo por cliente: 5 búsquedas por ventana de 24 h (configurable por .env).       # Rate limit.
# - Consulta vacía → resultado vacío y NO consume cupo.                              # Regla de consumo.
# - Cupo restante consultable sin consumir (GET /search/quota).                     # Indicador del sitio.
# =================================================================================  # Fin de cabecera.

from fastapi import APIRouter, Depends, Request                                   # Utilidades de FastAPI (router, dependencias, request).
from loguru import logger                                                         # Logger de Loguru para trazas claras.

from rsvp_app import schemas                                                      # Esquemas Pydantic de entrada/salida.
from rsvp_app.directory.cache import DirectoryCache                               # Caché del directorio vigente.
from rsvp_app.directory.resolver import SearchQuery, is_searchable, search        # Resolución bilingüe.
from rsvp_app.directory.script import detect_script                               # Idioma de la consulta (mensajes).
from rsvp_app.errors import RateLimited, SourceUnavailable                        # Errores de dominio → HTTP.
from rsvp_app.rate_limit import SearchRateLimiter                                 # Política de cupo.
from rsvp_app.services import get_directory_cache, get_rate_limiter               # Dependencias compartidas.
from rsvp_app.utils.i18n import t                                                 # Mensajes localizados.

router = APIRouter(                                                               # Crea un router de FastAPI para agrupar rutas relacionadas.
    prefix="/api/guests",                                                         # Prefijo común para todas las rutas de este módulo.
    tags=["search"],                                                              # Tag para documentación OpenAPI.
)                                                                                 # Cierra la construcción del router.


# =================================================================================
# ✅ Helper para identificar al cliente (id del navegador o IP real tras proxy/CDN)
# =================================================================================
def _client_id(request: Request) -> str:
    """
    Prioridad: X-Client-Id (id persistido por el navegador) > primer salto de
    X-Forwarded-For > X-Real-IP > CF-Connecting-IP > IP de la conexión.
    """
    explicit = (request.headers.get("x-client-id") or "").strip()                 # Id propio del sitio (localStorage).
    if explicit:
        return explicit[:128]                                                     # Acota longitud (es clave de BD).
    xff = request.headers.get("x-forwarded-for")                                  # Cabecera estándar de proxies.
    if xff:
        return xff.split(",")[0].strip()                                          # Primer salto = cliente original.
    for header in ("x-real-ip", "cf-connecting-ip"):                              # Variantes de nginx / Cloudflare.
        value = (request.headers.get(header) or "").strip()
        if value:
            return value
    return (request.client.host if request.client else None) or "unknown"         # IP de la conexión o 'unknown'.


# =================================================================================
# 🔎 ENDPOINT DE BÚSQUEDA
# =================================================================================
@router.post("/search", response_model=schemas.SearchResponse)
def search_guests(
    body: schemas.SearchRequest,                                                  # Payload: {searchQuery}.
    request: Request,                                                             # Para identificar al cliente.
    cache: DirectoryCache = Depends(get_directory_cache),                         # Directorio vigente.
    limiter: SearchRateLimiter = Depends(get_rate_limiter),                       # Cupo por cliente.
):
    """
    Busca invitados por nombre y devuelve a la familia completa de cada coincidencia.
    - 429 si el cliente agotó sus búsquedas del día.
    - 503 si la lista de invitados no está disponible (no consume cupo).
    """
    client_id = _client_id(request)
    lang = detect_script(body.search_query)                                       # Los mensajes salen en el idioma escrito.

    if not is_searchable(body.search_query):                                      # Consulta vacía: no gasta cupo.
        quota = limiter.peek(client_id)
        return {
            "guests": [],
            "searchLanguage": lang,
            "rateLimit": {"remaining": quota.remaining, "limit": quota.limit},
        }

    try:
        directory = cache.get()                                                   # Antes del cupo: una caída no cuesta búsquedas.
    except SourceUnavailable as e:
        raise SourceUnavailable(t("search.unavailable", lang), detail=e.detail, directory=e.directory) from e

    decision = limiter.check_and_consume(client_id)
    if not decision.allowed:
        logger.info("[SEARCH] Cupo agotado client={} (reset_at={})", client_id, decision.reset_at)
        raise RateLimited(
            t("search.rate_limited", lang, limit=decision.limit),
            limit=decision.limit,
            retry_after=decision.retry_after_seconds,
        )

    result = search(SearchQuery(text=body.search_query, client_id=client_id), directory)
    payload = result.to_payload()
    payload["rateLimit"] = {"remaining": decision.remaining, "limit": decision.limit}
    return payload


@router.get("/search/quota", response_model=schemas.QuotaResponse)
def search_quota(request: Request, limiter: SearchRateLimiter = Depends(get_rate_limiter)):
    """Búsquedas restantes en la ventana actual, sin consumir ninguna."""
    decision = limiter.peek(_client_id(request))
    return {"remaining": decision.remaining, "limit": decision.limit, "resetAt": decision.reset_at}

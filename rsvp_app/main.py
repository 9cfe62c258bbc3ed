# rsvp_app/main.py                                                                              # Ruta y nombre del archivo principal de la API.

# ================================================================
# 🧱 MODO MANTENIMIENTO (Control temporal desde variable de entorno)
# ================================================================

import os

# Si la variable MAINTENANCE_MODE=1 está activa, se crea una app mínima
if os.getenv("MAINTENANCE_MODE") == "1":
    from fastapi import FastAPI
    from fastapi.responses import JSONResponse
    from loguru import logger

    app = FastAPI(title="API en mantenimiento")

    @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"])
    async def maintenance_page(path: str):
        """Responde a cualquier ruta y método con mensaje neutro de mantenimiento."""
        return JSONResponse(
            status_code=503,
            content={
                "status": "offline",
                "message": "The RSVP site is under maintenance. Please come back later.",
            }
        )

    logger.warning("🚧 API arrancada en MODO MANTENIMIENTO. Todos los endpoints reales están desactivados.")
else:
    # =================================================================================             # Separador visual de sección.
    # 🧠 NÚCLEO DE LA APLICACIÓN API (FastAPI)                                                      # Título de la sección principal.
    # ---------------------------------------------------------------------------------             # Separador de sección.
    # - Carga .env ANTES de importar módulos que leen configuración al importarse.                 # Orden de carga.
    # - Configura CORS para el sitio de la boda.                                                    # Lista responsabilidades del módulo.
    # - Traduce los errores de dominio (RsvpError) a JSON {error, message}.                        # Manejo de errores.
    # - Registra routers modulares (search, rsvp, meta, admin).                                     # Continua la lista.
    # =================================================================================             # Fin del encabezado.

    from pathlib import Path                                                                        # Rutas de archivos.
    from dotenv import load_dotenv                                                                  # Carga variables desde .env.

    env_path = Path('.') / '.env'                                                                   # Ruta al archivo .env en el directorio actual.
    load_dotenv(dotenv_path=env_path)                                                               # Carga las variables de entorno.

    from fastapi import FastAPI, Request                                                            # App y request.
    from fastapi.exception_handlers import request_validation_exception_handler                     # Handler 422 por defecto.
    from fastapi.exceptions import RequestValidationError                                           # Errores de validación del body.
    from fastapi.middleware.cors import CORSMiddleware                                              # Middleware CORS.
    from fastapi.responses import JSONResponse                                                      # Respuestas JSON manuales.
    from loguru import logger                                                                       # Trazas de arranque.

    from rsvp_app import meta                                                                       # Router de metadatos.
    from rsvp_app.db import Base, engine, log_db_path_on_startup                                    # Engine + utilidad de log de BD.
    from rsvp_app.errors import RateLimited, RsvpError                                              # Taxonomía de errores.
    from rsvp_app.routers import admin, rsvp, search                                                # Routers reales.
    from rsvp_app.scheduler import start_scheduler, stop_scheduler                                  # Refresco periódico.
    from rsvp_app.services import get_directory_cache                                               # Caché compartida.
    from rsvp_app.utils.i18n import resolve_lang, t                                                 # Mensajes localizados.

    logger.info(                                                                                    # Variables clave para verificar configuración.
        "[BOOT] SOURCE={} | LAYOUT={} | RSVP_STORE={} | RL_BACKEND={}",
        "csv" if os.getenv("GUEST_CSV_PATH") else ("sheet" if os.getenv("GUEST_SHEET_ID") else "none"),
        os.getenv("GUEST_SHEET_LAYOUT", "full"),
        os.getenv("RSVP_STORE", "sql"),
        os.getenv("RATE_LIMIT_BACKEND", "sql"),
    )

    CORS_ORIGINS = [o.strip() for o in os.getenv(                                                   # Orígenes permitidos (coma-separados).
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173"
    ).split(",") if o.strip()]

    app = FastAPI(
        title="Wedding RSVP API",
        description="Búsqueda bilingüe de invitados por familia y confirmación de asistencia",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------------------------------------------------------------------------
    # 🚨 Errores de dominio → JSON
    # ---------------------------------------------------------------------------------------------
    def _is_rsvp_path(request: Request) -> bool:
        return request.url.path.rstrip("/") == "/api/rsvp"

    @app.exception_handler(RsvpError)
    async def rsvp_error_handler(request: Request, exc: RsvpError):
        payload = exc.to_payload()
        if _is_rsvp_path(request):                                                                  # El sitio espera 'success' en el envío.
            payload = {"success": False, **payload}
        headers = {}
        if isinstance(exc, RateLimited) and exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)
        if exc.detail:
            logger.warning("[API] {} {} → {} ({})", request.method, request.url.path, exc.code, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=payload, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        if not _is_rsvp_path(request):
            return await request_validation_exception_handler(request, exc)                        # 422 estándar fuera de /api/rsvp.
        lang = resolve_lang(None, accept_language_header=request.headers.get("accept-language"))
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "validation_failed", "message": t("rsvp.invalid_request", lang)},
        )

    # ---------------------------------------------------------------------------------------------
    # 🚀 Ciclo de vida
    # ---------------------------------------------------------------------------------------------
    # El esquema lo gestiona Alembic; DB_AUTO_CREATE=1 solo para desarrollo local con SQLite.
    @app.on_event("startup")
    def _startup() -> None:
        log_db_path_on_startup()
        if os.getenv("DB_AUTO_CREATE", "0") == "1":
            Base.metadata.create_all(bind=engine)
            logger.info("[BOOT] Tablas creadas con create_all (DB_AUTO_CREATE=1)")
        start_scheduler(get_directory_cache())

    @app.on_event("shutdown")
    def _shutdown() -> None:
        stop_scheduler()

    @app.get("/health", tags=["meta"])
    def health():
        return {"status": "ok"}

    app.include_router(search.router)                                                               # Búsqueda + cupo.
    app.include_router(rsvp.router)                                                                 # Envío de RSVP.
    app.include_router(meta.router)                                                                 # Metadatos para el front.
    app.include_router(admin.router)                                                                # Admin (API key).

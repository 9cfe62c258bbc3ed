# rsvp_app/routers/rsvp.py  # Router del envío de RSVP.

# =================================================================================
# 💌 Router: envío de confirmaciones RSVP
# ---------------------------------------------------------------------------------
# - Recibe los row_index seleccionados (orden del cliente), la asistencia y el idioma.
# - Toda la validación y la escritura las hace RsvpSubmissionHandler.
# - Los errores salen por el handler global de main.py con {success: false, ...}.
# =================================================================================

from fastapi import APIRouter, Depends, Request

from rsvp_app import schemas
from rsvp_app.errors import SourceUnavailable
from rsvp_app.services import get_submission_handler
from rsvp_app.submission import RsvpSubmission, RsvpSubmissionHandler
from rsvp_app.utils.i18n import resolve_lang, t

router = APIRouter(prefix="/api", tags=["rsvp"])


@router.post("/rsvp", response_model=schemas.RsvpResult)
def submit_rsvp(
    body: schemas.RsvpRequest,
    request: Request,
    handler: RsvpSubmissionHandler = Depends(get_submission_handler),
):
    """Guarda la respuesta de todos los invitados seleccionados y devuelve el mensaje de gracias."""
    lang = resolve_lang(body.client_language, accept_language_header=request.headers.get("accept-language"))
    submission = RsvpSubmission(
        selected_row_indexes=body.selected_row_indexes,
        attending=body.attending,
        client_language=lang,
    )
    try:
        confirmation = handler.submit(submission)
    except SourceUnavailable as e:
        raise SourceUnavailable(t("search.unavailable", lang), detail=e.detail, directory=e.directory) from e
    return confirmation.to_payload()

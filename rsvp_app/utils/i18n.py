# rsvp_app/utils/i18n.py                                                          # Módulo central de i18n (inglés/árabe).

from __future__ import annotations                                                # Habilita anotaciones pospuestas.

# =================================================================================
# 🔤 Resolución de idioma: payload > escritura de la búsqueda > Accept-Language > default
# =================================================================================

SUPPORTED_LANGS = {"en", "ar"}                                                   # Idiomas soportados por el sitio.
DEFAULT_LANG = "en"                                                              # Fallback consistente del proyecto.

_EASTERN_DIGITS = "٠١٢٣٤٥٦٧٨٩"                                                   # Dígitos arábigo-orientales (0-9).
_TO_EASTERN = str.maketrans("0123456789", _EASTERN_DIGITS)                       # Tabla de traducción occidental → oriental.


def _base_lang(code: str | None) -> str | None:                                  # Normaliza un código de idioma potencialmente regional.
    """Normaliza 'ar-EG', 'en-GB', 'ar-SA' a 'ar'/'en'; None si no está soportado."""
    if not code:                                                                  # Si no hay valor...
        return None                                                               # ...no hay candidato.
    code = code.strip().lower()                                                   # Limpia espacios y pasa a minúsculas.
    if not code:                                                                  # Si quedó vacío tras limpiar...
        return None
    primary = code.split(",")[0].split(";")[0].strip()                            # Primer item antes de coma o ;q= (headers).
    primary = primary.split("-")[0].split("_")[0]                                 # Subtipo primario ('ar' de 'ar-EG').
    return primary if primary in SUPPORTED_LANGS else None                        # Devuelve base si está soportado.


def resolve_lang(                                                                 # Interfaz pública para resolver idioma final.
    payload_lang: str | None,                                                      # Idioma explícito del cliente.
    search_lang: str | None = None,                                                # Idioma detectado en la última búsqueda.
    accept_language_header: str | None = None,                                     # Cabecera HTTP 'Accept-Language'.
    default: str = DEFAULT_LANG,                                                   # Fallback ('en').
) -> str:
    """Resuelve y devuelve siempre un idioma soportado ('en'/'ar')."""
    for cand in (payload_lang, search_lang, accept_language_header):               # Orden de prioridad.
        base = _base_lang(cand)
        if base:
            return base
    return default if default in SUPPORTED_LANGS else DEFAULT_LANG


# =================================================================================
# 🔢 Números arábigo-orientales (el sitio muestra "طاولة ٥" en árabe)
# =================================================================================
def to_arabic_numerals(value: int | str, is_arabic: bool) -> str:
    """Convierte 0-9 → ٠-٩ solo si el idioma es árabe."""
    text = str(value)
    return text.translate(_TO_EASTERN) if is_arabic else text


def format_number(value: int | str, lang: str, min_digits: int | None = None) -> str:
    """Rellena con ceros a la izquierda (opcional) y localiza los dígitos."""
    text = str(value)
    if min_digits:
        text = text.zfill(min_digits)
    return to_arabic_numerals(text, lang == "ar")


# =================================================================================
# 💬 Mensajes de confirmación
# =================================================================================
MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "rsvp.thanks_attending": "Thank you, {names}! We can't wait to celebrate with you.",
        "rsvp.thanks_declined": "Thank you for letting us know, {names}. We'll miss you!",
        "rsvp.table": "Your table number is {table}.",
        "search.rate_limited": "You have reached the daily search limit of {limit} searches. Please try again tomorrow.",
        "search.unavailable": "The guest list is temporarily unavailable. Please try again in a few minutes.",
        "rsvp.invalid_guests": "Some of the selected guests could not be found. Please search again.",
        "rsvp.missing_attendance": "Please choose whether you will attend.",
        "rsvp.no_selection": "Please select at least one guest.",
        "rsvp.storage_failed": "We could not save your RSVP. Please try again.",
        "rsvp.invalid_request": "The RSVP request is malformed. Please reload the page and try again.",
    },
    "ar": {
        "rsvp.thanks_attending": "شكراً لكم، {names}! ننتظر الاحتفال معكم بفارغ الصبر.",
        "rsvp.thanks_declined": "شكراً لإعلامنا، {names}. سنفتقدكم!",
        "rsvp.table": "رقم طاولتكم هو {table}.",
        "search.rate_limited": "لقد وصلت إلى الحد اليومي للبحث ({limit} عمليات بحث). يرجى المحاولة غداً.",
        "search.unavailable": "قائمة الضيوف غير متاحة مؤقتاً. يرجى المحاولة بعد بضع دقائق.",
        "rsvp.invalid_guests": "تعذر العثور على بعض الضيوف المختارين. يرجى البحث مرة أخرى.",
        "rsvp.missing_attendance": "يرجى اختيار ما إذا كنتم ستحضرون.",
        "rsvp.no_selection": "يرجى اختيار ضيف واحد على الأقل.",
        "rsvp.storage_failed": "تعذر حفظ ردكم. يرجى المحاولة مرة أخرى.",
        "rsvp.invalid_request": "طلب التأكيد غير صالح. يرجى إعادة تحميل الصفحة والمحاولة مرة أخرى.",
    },
}


def t(key: str, lang: str | None = None, **params) -> str:
    """Traduce `key` al idioma pedido (fallback inglés) e interpola parámetros."""
    code = _base_lang(lang) or DEFAULT_LANG
    bundle = MESSAGES.get(code, MESSAGES[DEFAULT_LANG])
    template = bundle.get(key) or MESSAGES[DEFAULT_LANG].get(key, key)
    return template.format(**params) if params else template


def join_names(names: list[str], lang: str) -> str:
    """'A', 'A & B', 'A, B & C' (con 'و' en árabe)."""
    clean = [n for n in names if n]
    if not clean:
        return ""
    if len(clean) == 1:
        return clean[0]
    sep, last = ("، ", " و") if lang == "ar" else (", ", " & ")
    return sep.join(clean[:-1]) + last + clean[-1]

# rsvp_app/directory/resolver.py

# =================================================================================
# 🔎 RESOLUCIÓN BILINGÜE DE INVITADOS
# ---------------------------------------------------------------------------------
# 1) Detecta la escritura de la consulta ('ar' / 'en').
# 2) Busca la consulta como subcadena (sin mayúsculas) en el nombre de ESA escritura.
# 3) Expande a toda la familia: mismo grupo familiar exacto (ya normalizado en ingesta).
# 4) Deduplica por row_index y respeta el orden de la hoja (no el orden de match).
# 5) Devuelve el idioma detectado junto al resultado.
# =================================================================================

import time
from dataclasses import dataclass
from typing import List, Set, Tuple

from loguru import logger

from rsvp_app.directory.builder import GuestDirectory, GuestRow, family_key, fold_name
from rsvp_app.directory.script import ScriptCode, detect_script

MIN_QUERY_CHARS = 1                                  # Mínimo de caracteres no-espacio para buscar.


@dataclass(frozen=True)
class SearchQuery:
    text: str
    client_id: str = "unknown"


@dataclass(frozen=True)
class SearchResult:
    guests: Tuple[GuestRow, ...]
    search_language: ScriptCode

    def __len__(self) -> int:
        return len(self.guests)

    @property
    def row_indexes(self) -> Tuple[int, ...]:
        return tuple(g.row_index for g in self.guests)

    def to_payload(self) -> dict:
        return {
            "guests": [g.to_payload() for g in self.guests],
            "searchLanguage": self.search_language,
        }


def is_searchable(text: str | None) -> bool:
    """True si la consulta tiene suficiente contenido para lanzar una búsqueda."""
    return len((text or "").strip()) >= MIN_QUERY_CHARS


def _match_candidates(needle: str, language: ScriptCode, directory: GuestDirectory) -> Set[int]:
    index = directory.arabic_index if language == "ar" else directory.english_index
    return {row_index for name, row_index in index if needle in name}


def search(query: SearchQuery, directory: GuestDirectory) -> SearchResult:
    """Resuelve la consulta y garantiza que el resultado queda cerrado por familia."""
    started = time.perf_counter()
    text = query.text if isinstance(query.text, str) else str(query.text or "")
    language = detect_script(text)

    if not is_searchable(text):
        return SearchResult(guests=(), search_language=language)

    needle = fold_name(text)
    candidates = _match_candidates(needle, language, directory)

    # --- Expansión por familia (grupos vacíos nunca se expanden) ---
    selected: Set[int] = set(candidates)
    groups = {family_key(directory.by_row[i].family_group) for i in candidates}
    groups.discard("")
    for group in groups:
        selected.update(directory.families.get(group, ()))

    # --- Orden estable: el de la hoja ---
    ordered: List[GuestRow] = [g for g in directory.guests if g.row_index in selected]

    logger.info(
        "[SEARCH] client={} lang={} matches={} families={} total={} ({:.1f} ms)",
        query.client_id, language, len(candidates), len(groups), len(ordered),
        (time.perf_counter() - started) * 1000,
    )
    return SearchResult(guests=tuple(ordered), search_language=language)

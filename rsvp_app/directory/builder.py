# rsvp_app/directory/builder.py

# =================================================================================
# 📇 CONSTRUCTOR DEL DIRECTORIO DE INVITADOS
# ---------------------------------------------------------------------------------
# - Convierte filas CSV ya parseadas en GuestRow inmutables.
# - Construye 3 índices: nombre inglés, nombre árabe y grupo familiar.
# - Los índices se montan AL FINAL: nunca se expone un directorio a medias.
# - El directorio no se modifica: cada refresco crea uno nuevo y se reemplaza entero.
#
# Estructura de la hoja (por posición, igual que el export de Google Sheets):
#   A=Nombre inglés, B=Nombre árabe, C=Grupo familiar, D=Confirmación,
#   E=Mesa, F=Fecha, G=Hora
# =================================================================================

import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from rsvp_app.directory.csv_parser import parse_csv
from rsvp_app.directory.script import contains_arabic

FAMILY_GROUP_CASEFOLD = os.getenv("FAMILY_GROUP_CASEFOLD", "0") == "1"   # Por defecto: coincidencia exacta con mayúsculas.

# Caracteres invisibles que rompían grupos "iguales" en la hoja (ZWSP, ZWNJ, ZWJ, LRM, RLM, BOM).
_INVISIBLE_RE = re.compile(r"[\u200b\u200c\u200d\u200e\u200f\u2060\ufeff]")
_SPACES_RE = re.compile(r"\s+")
_COMBINED_NAME_SPLIT_RE = re.compile(r"\s*[/|]\s*")


# ---------------------------------------------------------------------------------
# 🗺️ Mapeo de columnas
# ---------------------------------------------------------------------------------
@dataclass(frozen=True)
class SheetLayout:
    """Posición (0-based) de cada columna en el export. None = la columna no existe."""

    english_name: int = 0
    arabic_name: Optional[int] = 1          # None → la columna A trae "English / عربي" combinado.
    family_group: int = 2
    confirmation: Optional[int] = 3
    table_number: Optional[int] = 4
    date: Optional[int] = 5
    time: Optional[int] = 6

    @property
    def width(self) -> int:
        cols = [c for c in (self.english_name, self.arabic_name, self.family_group,
                            self.confirmation, self.table_number, self.date, self.time) if c is not None]
        return max(cols) + 1


DEFAULT_LAYOUT = SheetLayout()
# Variante mínima documentada: A=nombre(s), B=grupo familiar, C=mesa.
COMPACT_LAYOUT = SheetLayout(english_name=0, arabic_name=None, family_group=1,
                             confirmation=None, table_number=2, date=None, time=None)


# ---------------------------------------------------------------------------------
# 🧍 Modelos inmutables
# ---------------------------------------------------------------------------------
@dataclass(frozen=True)
class GuestRow:
    english_name: str
    arabic_name: str
    family_group: str
    table_number: Optional[str]          # None si la celda de mesa está vacía.
    row_index: int

    @property
    def sheet_row(self) -> int:
        """Fila real en la hoja (cabecera = 1, primer dato = 2)."""
        return self.row_index + 2

    def to_payload(self) -> dict:
        return {
            "englishName": self.english_name,
            "arabicName": self.arabic_name,
            "familyGroup": self.family_group,
            "tableNumber": self.table_number,
            "rowIndex": self.row_index,
        }


@dataclass(frozen=True)
class GuestDirectory:
    guests: Tuple[GuestRow, ...] = ()
    english_index: Tuple[Tuple[str, int], ...] = ()          # (nombre normalizado, row_index)
    arabic_index: Tuple[Tuple[str, int], ...] = ()
    families: Mapping[str, Tuple[int, ...]] = field(default_factory=lambda: MappingProxyType({}))
    by_row: Mapping[int, GuestRow] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def empty(cls) -> "GuestDirectory":
        return cls()

    def __len__(self) -> int:
        return len(self.guests)

    def get(self, row_index: int) -> Optional[GuestRow]:
        return self.by_row.get(row_index)

    def family_members(self, family_group: str) -> Tuple[GuestRow, ...]:
        key = family_key(family_group)
        if not key:
            return ()
        return tuple(self.by_row[i] for i in self.families.get(key, ()))


# ---------------------------------------------------------------------------------
# 🧼 Normalización (en ingesta, no en búsqueda)
# ---------------------------------------------------------------------------------
def fold_name(value: str) -> str:
    """Clave de búsqueda de nombres: espacios colapsados + casefold."""
    return _SPACES_RE.sub(" ", _INVISIBLE_RE.sub("", value or "")).strip().casefold()


def normalize_family_group(value: str) -> str:
    """Quita invisibles, NBSP→espacio, colapsa espacios y recorta. Conserva mayúsculas."""
    txt = _INVISIBLE_RE.sub("", value or "").replace("\u00a0", " ")
    return _SPACES_RE.sub(" ", txt).strip()


def family_key(value: str) -> str:
    """Clave exacta del grupo familiar usada por el índice de familias."""
    key = normalize_family_group(value)
    return key.casefold() if FAMILY_GROUP_CASEFOLD else key


def _cell(fields: Sequence[str], idx: Optional[int]) -> str:
    if idx is None or idx >= len(fields):
        return ""
    # Las comillas ya las resolvió el parser: lo que quede aquí es texto literal.
    return (fields[idx] or "").strip()


def _split_combined_name(raw: str) -> Tuple[str, str]:
    """'Sarah Abdelrahman / سارة عبد الرحمان' → ('Sarah Abdelrahman', 'سارة عبد الرحمان')."""
    english, arabic = "", ""
    for part in _COMBINED_NAME_SPLIT_RE.split(raw):
        if not part:
            continue
        if contains_arabic(part):
            arabic = arabic or part
        else:
            english = english or part
    return english, arabic


# ---------------------------------------------------------------------------------
# 🏗️ Construcción
# ---------------------------------------------------------------------------------
def build_directory(rows: Iterable[Sequence[str]], layout: SheetLayout = DEFAULT_LAYOUT) -> GuestDirectory:
    """
    Construye el directorio a partir de filas parseadas (la primera es la cabecera).
    row_index = posición entre filas de datos; las filas descartadas también consumen
    su índice para que row_index + 2 siga apuntando a la fila real de la hoja.
    """
    guests: List[GuestRow] = []
    discarded = 0

    for row_index, fields in enumerate(list(rows)[1:]):
        if not any((f or "").strip() for f in fields):
            discarded += 1
            continue

        if layout.arabic_name is None:
            english, arabic = _split_combined_name(_cell(fields, layout.english_name))
        else:
            english = _cell(fields, layout.english_name)
            arabic = _cell(fields, layout.arabic_name)

        if not english:                                    # Sin nombre inglés no hay invitado.
            discarded += 1
            continue

        guests.append(GuestRow(
            english_name=english,
            arabic_name=arabic,
            family_group=normalize_family_group(_cell(fields, layout.family_group)),
            table_number=_cell(fields, layout.table_number) or None,
            row_index=row_index,
        ))

    # --- Índices: último paso, sobre la lista ya completa ---
    english_index = tuple((fold_name(g.english_name), g.row_index) for g in guests)
    arabic_index = tuple((fold_name(g.arabic_name), g.row_index) for g in guests if g.arabic_name)
    families: Dict[str, List[int]] = {}
    for g in guests:
        key = family_key(g.family_group)
        if key:
            families.setdefault(key, []).append(g.row_index)

    directory = GuestDirectory(
        guests=tuple(guests),
        english_index=english_index,
        arabic_index=arabic_index,
        families=MappingProxyType({k: tuple(v) for k, v in families.items()}),
        by_row=MappingProxyType({g.row_index: g for g in guests}),
    )
    logger.info("[DIRECTORY] Construido: guests={} families={} discarded={}",
                len(guests), len(families), discarded)
    return directory


def build_directory_from_text(csv_text: str, layout: SheetLayout = DEFAULT_LAYOUT) -> GuestDirectory:
    """Texto CSV completo → directorio. Rellena cada fila hasta el ancho del layout."""
    return build_directory(parse_csv(csv_text, min_columns=layout.width), layout=layout)

# rsvp_app/directory/csv_parser.py

# =================================================================================
# 🧾 PARSER DE FILAS CSV (export de Google Sheets)
# ---------------------------------------------------------------------------------
# - scan_line(): separa una fila respetando campos entre comillas y "" escapadas,
#   e indica si quedó una comilla sin cerrar (fila degradada).
# - parse_line(): igual, pero solo devuelve los campos rellenados a `min_columns`.
# - split_lines(): normaliza finales de línea y descarta líneas en blanco.
# - Nunca lanza excepción: una fila mal formada se divide "lo mejor posible".
# =================================================================================

from typing import List, Tuple

from loguru import logger

MIN_COLUMNS = 2                                   # Nombre + grupo familiar como mínimo.
_BOM = "\ufeff"                                 # Google a veces antepone BOM al export.


def scan_line(line: str) -> Tuple[List[str], bool]:
    """Devuelve (campos, degradada). Las comillas delimitadoras nunca llegan a los campos."""
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(line or "")

    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')               # "" dentro de comillas → comilla literal.
                i += 2
                continue
            in_quotes = not in_quotes             # Abre o cierra el tramo entre comillas.
        elif ch == "," and not in_quotes:
            fields.append("".join(current))       # Coma fuera de comillas cierra el campo.
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current))               # Último campo (siempre existe, aunque sea vacío).
    return fields, in_quotes


def parse_line(line: str, min_columns: int = MIN_COLUMNS) -> List[str]:
    """Divide una fila CSV en campos y rellena con '' hasta `min_columns`."""
    fields, degraded = scan_line(line)
    if degraded:
        # ParseDegraded: comilla sin cerrar. Se devuelve lo acumulado, sin propagar.
        logger.debug("[CSV] Comilla sin cerrar, split degradado: {!r}", line[:80])

    while len(fields) < min_columns:
        fields.append("")
    return fields


def split_lines(text: str) -> List[str]:
    """Normaliza \\r\\n y \\r a \\n y devuelve solo las líneas no vacías."""
    if not text:
        return []
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return [ln for ln in normalized.split("\n") if ln.strip()]


def parse_csv(text: str, min_columns: int = MIN_COLUMNS) -> List[List[str]]:
    """Atajo: texto completo → lista de filas parseadas (cabecera incluida)."""
    return [parse_line(ln, min_columns=min_columns) for ln in split_lines(text)]

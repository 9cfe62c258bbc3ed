# scripts/check_guest_csv.py
# Revisa una exportación de la lista de invitados (CSV o Excel) ANTES de publicarla:
# cuenta invitados y familias, y avisa de grupos casi iguales o mesas inconsistentes.
#
# Uso:
#   python scripts/check_guest_csv.py invitados.csv
#   python scripts/check_guest_csv.py invitados.xlsx --sheet "Guests" --layout full --strict

from __future__ import annotations

import argparse
import json
import sys
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from loguru import logger

# ==============================================================================
# ✅ Bootstrap de imports: asegura que 'rsvp_app' sea importable desde /scripts
# ------------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rsvp_app.directory.builder import (  # noqa: E402
    COMPACT_LAYOUT,
    DEFAULT_LAYOUT,
    GuestDirectory,
    build_directory,
)
# ==============================================================================


def _read_table(file_path: str, *, sheet_name: Optional[str] = None) -> pd.DataFrame:
    """Lee .xlsx/.xls o .csv con dtype=str y fillna('') (la cabecera se conserva aparte)."""
    if file_path.lower().endswith((".xlsx", ".xls")):
        return pd.read_excel(file_path, dtype=str, sheet_name=sheet_name or 0).fillna("")
    return pd.read_csv(file_path, dtype=str, encoding="utf-8-sig", keep_default_na=False).fillna("")


def dataframe_to_rows(df: pd.DataFrame) -> List[List[str]]:
    """Cabecera + filas como listas de texto, el mismo formato que produce el parser CSV."""
    header = [str(c) for c in df.columns]
    return [header] + [[str(v) for v in row] for row in df.itertuples(index=False, name=None)]


def analyze(directory: GuestDirectory, total_rows: int) -> Dict:
    """Resumen del directorio + avisos para revisar a mano."""
    warnings: List[str] = []

    # Grupos que solo difieren en mayúsculas: en la hoja suelen ser la misma familia mal escrita.
    by_folded: Dict[str, List[str]] = defaultdict(list)
    for group in directory.families:
        by_folded[group.casefold()].append(group)
    for variants in by_folded.values():
        if len(variants) > 1:
            warnings.append(f"Family groups differ only by case: {sorted(variants)}")

    # Una familia sentada en mesas distintas hace que la mesa mostrada dependa del orden.
    for group, rows in directory.families.items():
        tables = {directory.by_row[i].table_number for i in rows}
        if len(tables) > 1:
            warnings.append(f"Family '{group}' spans several tables: {sorted(t or '-' for t in tables)}")

    without_table = [g.row_index for g in directory.guests if not g.table_number]
    single_member = [group for group, rows in directory.families.items() if len(rows) == 1]
    if single_member:
        warnings.append(f"Family groups with a single member: {sorted(single_member)}")

    return {
        "guests": len(directory),
        "discarded_rows": max(0, total_rows - len(directory)),
        "families": len(directory.families),
        "ungrouped_guests": sum(1 for g in directory.guests if not g.family_group),
        "arabic_names_missing": sum(1 for g in directory.guests if not g.arabic_name),
        "guests_without_table": len(without_table),
        "warnings": warnings,
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Valida la exportación de la lista de invitados.")
    parser.add_argument("path", help="Archivo .csv o .xlsx exportado de la hoja")
    parser.add_argument("--sheet", default=None, help="Pestaña (solo Excel)")
    parser.add_argument("--layout", choices=["full", "compact"], default="full")
    parser.add_argument("--json", action="store_true", help="Imprime el resumen como JSON")
    parser.add_argument("--strict", action="store_true", help="Código de salida 1 si hay avisos")
    args = parser.parse_args(argv)

    layout = COMPACT_LAYOUT if args.layout == "compact" else DEFAULT_LAYOUT
    df = _read_table(args.path, sheet_name=args.sheet)
    rows = dataframe_to_rows(df)
    directory = build_directory(rows, layout=layout)
    report = analyze(directory, total_rows=len(rows) - 1)

    if args.json:
        print(json.dumps(report, ensure_ascii=False, indent=2))
    else:
        logger.info("📋 Invitados: {} | Familias: {} | Sin grupo: {} | Sin mesa: {} | Descartadas: {}",
                    report["guests"], report["families"], report["ungrouped_guests"],
                    report["guests_without_table"], report["discarded_rows"])
        for w in report["warnings"]:
            logger.warning("⚠️  {}", w)
        if not report["warnings"]:
            logger.success("✅ Sin avisos.")

    return 1 if (args.strict and report["warnings"]) else 0


if __name__ == "__main__":
    sys.exit(main())

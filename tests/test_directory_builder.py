# tests/test_directory_builder.py
# Construcción del directorio: cabecera, row_index estable, descartes, índices y normalización de familias.

import pytest

from rsvp_app.directory.builder import (
    COMPACT_LAYOUT,
    GuestDirectory,
    build_directory,
    build_directory_from_text,
    normalize_family_group,
)


def test_header_is_skipped_and_rows_keep_their_position(directory):
    assert len(directory) == 6
    assert [g.row_index for g in directory.guests] == [0, 1, 2, 3, 4, 5]
    first = directory.get(0)
    assert first.english_name == "Sarah Abdelrahman"
    assert first.arabic_name == "سارة عبد الرحمان"
    assert first.table_number == "5"
    assert first.sheet_row == 2


def test_quoted_name_survives_into_the_directory(directory):
    assert directory.get(5).english_name == 'Smith, "Jr"'
    assert directory.get(5).table_number == "3"


def test_escaped_quotes_at_field_edges_are_not_lost():
    d = build_directory_from_text('E,A,F,C,T\n"Ali ""Al",,,,"5"""\n')
    assert d.get(0).english_name == 'Ali "Al'
    assert d.get(0).table_number == '5"'


def test_empty_table_cell_becomes_none(directory):
    assert directory.get(2).table_number is None
    assert directory.get(2).to_payload()["tableNumber"] is None


def test_family_groups_are_normalized_at_ingestion(directory):
    # "Smith Family " (espacio final) y "Smith Family" son el mismo grupo.
    assert directory.families["Smith Family"] == (3, 4)
    assert directory.get(4).family_group == "Smith Family"


def test_ungrouped_guests_are_not_in_the_family_index(directory):
    assert "" not in directory.families
    assert directory.get(2).family_group == ""
    assert directory.family_members("") == ()


def test_rows_without_english_name_are_discarded_but_consume_their_index():
    rows = [
        ["English", "Arabic", "Family"],
        ["Ana", "", "F1"],
        ["", "", "F1"],            # Sin nombre → descartada.
        ["", "", ""],              # Fila vacía → descartada.
        ["", "ليلى", ""],          # Solo árabe → descartada.
        ["Omar", "عمر", ""],
    ]
    d = build_directory(rows)
    assert [g.row_index for g in d.guests] == [0, 4]
    assert d.get(3) is None
    assert d.get(4).sheet_row == 6


def test_every_guest_has_an_english_name():
    d = build_directory_from_text("E,A,F\n,سارة,Fam\nHossni,حسني,Fam\n")
    assert [(g.english_name, g.row_index) for g in d.guests] == [("Hossni", 1)]
    assert d.families["Fam"] == (1,)


def test_indices_only_contain_populated_names():
    d = build_directory([["h"], ["Ana", "", ""], ["Layla", "ليلى", ""]])
    assert d.english_index == (("ana", 0), ("layla", 1))
    assert d.arabic_index == (("ليلى", 1),)


def test_header_only_gives_an_empty_directory():
    d = build_directory_from_text("English,Arabic,Family\n")
    assert len(d) == 0
    assert d.families == {}


def test_directory_is_immutable(directory):
    with pytest.raises(AttributeError):
        directory.guests = ()
    with pytest.raises(TypeError):
        directory.families["x"] = (1,)


def test_empty_directory():
    empty = GuestDirectory.empty()
    assert len(empty) == 0
    assert empty.get(0) is None


@pytest.mark.parametrize("raw, expected", [
    ("  Smith   Family ", "Smith Family"),
    ("Smith\u00a0Family", "Smith Family"),
    ("Smith\u200b Family\u200f", "Smith Family"),
    ("\ufeffSmith Family", "Smith Family"),
    ("", ""),
])
def test_normalize_family_group(raw, expected):
    assert normalize_family_group(raw) == expected


def test_family_matching_stays_case_sensitive():
    text = "E,A,F\nAna,,Garcia\nLuis,,garcia\n"
    d = build_directory_from_text(text)
    assert d.families["Garcia"] == (0,)
    assert d.families["garcia"] == (1,)


def test_compact_layout_splits_combined_names():
    text = (
        "Name,Family,Table\n"
        "Sarah Abdelrahman / سارة عبد الرحمان,Sarah And Hossni's Family,5\n"
        "حسني | Hossni,Sarah And Hossni's Family,5\n"
        "Nadia Khalil,,\n"
    )
    d = build_directory_from_text(text, layout=COMPACT_LAYOUT)
    assert d.get(0).english_name == "Sarah Abdelrahman"
    assert d.get(0).arabic_name == "سارة عبد الرحمان"
    assert d.get(1).english_name == "Hossni"
    assert d.get(1).arabic_name == "حسني"
    assert d.get(2).arabic_name == ""
    assert d.get(0).table_number == "5"
    assert d.families["Sarah And Hossni's Family"] == (0, 1)

"""Tests for residue selection filters (union across chain entries)."""
import pytest

from pdbviewer.visualization.selection import (
    ResidueSelection,
    build_selection_filter,
    parse_selection_text,
)

ENTRIES = [{"chain": "A", "residue": [10, 11]}, {"chain": "B", "residue": [5]}]


def test_entries_combine_as_union():
    selection = build_selection_filter(ENTRIES)
    structure_keys = {("A", 5), ("A", 10), ("A", 11), ("B", 5), ("B", 10), ("B", 11)}
    assert selection.select(structure_keys) == {("A", 10), ("A", 11), ("B", 5)}


def test_chain_and_residue_must_both_match():
    selection = build_selection_filter(ENTRIES)
    assert selection.matches("A", 10)
    assert not selection.matches("A", 5)
    assert not selection.matches("B", 10)
    assert not selection.matches("C", 10)


def test_to_spec_is_or_of_chain_groups():
    spec = build_selection_filter(ENTRIES).to_spec()
    assert spec == {"or": [{"chain": "A", "resi": [10, 11]}, {"chain": "B", "resi": [5]}]}


def test_empty_selection_is_falsy():
    assert not build_selection_filter([])
    assert not build_selection_filter([ResidueSelection("A", ())])
    assert build_selection_filter(ENTRIES)


def test_filters_compare_by_value():
    assert build_selection_filter(ENTRIES) == build_selection_filter(
        [ResidueSelection("A", (10, 11)), ResidueSelection("B", (5,))]
    )


def test_parse_selection_text():
    assert parse_selection_text("A:10,11; B:5") == [
        ResidueSelection("A", (10, 11)),
        ResidueSelection("B", (5,)),
    ]
    assert parse_selection_text("") == []
    assert parse_selection_text(" ; ") == []


@pytest.mark.parametrize("text", ["10,11", ":5", "A:x"])
def test_parse_selection_text_errors(text):
    with pytest.raises(ValueError):
        parse_selection_text(text)

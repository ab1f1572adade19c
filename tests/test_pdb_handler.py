import asyncio

import httpx
import pytest

from pdbviewer.utils.config import AppConfig
from pdbviewer.utils.pdb_handler import (
    InvalidIdentifierError,
    PDBHandler,
    StructureNotFoundError,
    UpstreamError,
    normalize_pdb_id,
)


def test_normalize_pdb_id():
    assert normalize_pdb_id("1crn") == "1CRN"
    # only the length is checked
    assert normalize_pdb_id("a-b!") == "A-B!"
    for bad in (None, "", "abc", "abcde"):
        with pytest.raises(InvalidIdentifierError):
            normalize_pdb_id(bad)


def _handler(status, text=""):
    seen = []

    def handle(request):
        seen.append(str(request.url))
        return httpx.Response(status, text=text)

    return handle, seen


def test_fetch_returns_body(sample_pdb_text):
    handle, seen = _handler(200, sample_pdb_text)
    handler = PDBHandler(AppConfig(), transport=httpx.MockTransport(handle))
    text = asyncio.run(handler.fetch_pdb_text("1crn"))
    assert text == sample_pdb_text
    assert seen == ["https://files.rcsb.org/download/1CRN.pdb"]


def test_fetch_maps_upstream_statuses():
    handle, _ = _handler(404)
    handler = PDBHandler(AppConfig(), transport=httpx.MockTransport(handle))
    with pytest.raises(StructureNotFoundError) as exc:
        asyncio.run(handler.fetch_pdb_text("9zzz"))
    assert exc.value.pdb_id == "9ZZZ"

    handle, _ = _handler(502)
    handler = PDBHandler(AppConfig(), transport=httpx.MockTransport(handle))
    with pytest.raises(UpstreamError):
        asyncio.run(handler.fetch_pdb_text("1CRN"))


def test_invalid_id_never_reaches_transport():
    handle, seen = _handler(200, "HEADER")
    handler = PDBHandler(AppConfig(), transport=httpx.MockTransport(handle))
    with pytest.raises(InvalidIdentifierError):
        asyncio.run(handler.fetch_pdb_text("1CRNA"))
    assert seen == []


def test_structure_helpers(sample_pdb_text):
    handler = PDBHandler(AppConfig())
    structure = handler.load_structure_from_text(sample_pdb_text, "1CRN")
    coords = handler.atom_coordinates(structure)
    assert coords.shape == ((12 + 6) * 2, 3)
    keys = handler.residue_keys(structure)
    assert ("A", 12) in keys and ("B", 6) in keys
    assert ("B", 7) not in keys
    assert len(keys) == 18


def test_structure_helpers_on_empty_text():
    handler = PDBHandler(AppConfig())
    structure = handler.load_structure_from_text("not a structure file\n", "junk")
    assert handler.atom_coordinates(structure).shape == (0, 3)
    assert handler.residue_keys(structure) == set()

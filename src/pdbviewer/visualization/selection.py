"""
Residue selection filters for highlighting parts of a structure.

A selection list such as ``[{"chain": "A", "residue": [10, 11]}, {"chain": "B", "residue": [5]}]``
becomes one filter per entry (chain matches AND residue number is any of the listed
values); the entries are combined with OR, so every chain/residue pair is matched
independently.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Set, Tuple, Union


@dataclass(frozen=True)
class ResidueSelection:
    """Residues of a single chain to highlight."""

    chain: str
    residues: Tuple[int, ...]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ResidueSelection":
        residues = data.get("residue", data.get("residues", []))
        return cls(chain=str(data["chain"]), residues=tuple(int(r) for r in residues))

    def matches(self, chain: str, resseq: int) -> bool:
        return chain == self.chain and resseq in self.residues

    def to_spec(self) -> Dict[str, Any]:
        return {"chain": self.chain, "resi": list(self.residues)}


@dataclass(frozen=True)
class SelectionFilter:
    """Union of per-chain residue selections."""

    groups: Tuple[ResidueSelection, ...]

    def __bool__(self) -> bool:
        return any(group.residues for group in self.groups)

    def matches(self, chain: str, resseq: int) -> bool:
        return any(group.matches(chain, resseq) for group in self.groups)

    def select(self, residue_keys: Iterable[Tuple[str, int]]) -> Set[Tuple[str, int]]:
        """Return the (chain, residue) pairs of a structure matched by this filter."""
        return {key for key in residue_keys if self.matches(*key)}

    def to_spec(self) -> Dict[str, Any]:
        """3Dmol.js atom selection spec for this filter."""
        return {"or": [group.to_spec() for group in self.groups if group.residues]}


SelectionInput = Union[ResidueSelection, Mapping[str, Any]]


def build_selection_filter(entries: Iterable[SelectionInput]) -> SelectionFilter:
    """Build the combined (OR) filter from a list of selection entries."""
    groups = []
    for entry in entries:
        if not isinstance(entry, ResidueSelection):
            entry = ResidueSelection.from_mapping(entry)
        groups.append(entry)
    return SelectionFilter(groups=tuple(groups))


def parse_selection_text(text: str) -> List[ResidueSelection]:
    """Parse ``"A:10,11; B:5"`` into selection entries.

    Entries are separated by ``;``, chain and residues by ``:``, residues by ``,``.

    Raises:
        ValueError: on a missing chain or a non-integer residue number
    """
    selections: List[ResidueSelection] = []
    for chunk in text.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        chain, sep, residues = chunk.partition(":")
        chain = chain.strip()
        if not sep or not chain:
            raise ValueError(f"Expected CHAIN:RESIDUES, got {chunk!r}")
        numbers = tuple(int(r) for r in residues.split(",") if r.strip())
        selections.append(ResidueSelection(chain=chain, residues=numbers))
    return selections

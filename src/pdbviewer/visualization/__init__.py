"""3D visualization harness built on py3Dmol."""

from pdbviewer.visualization.selection import ResidueSelection, SelectionFilter, build_selection_filter
from pdbviewer.visualization.structure_viewer import SessionState, StructurePayload, StructureViewer

__all__ = [
    "ResidueSelection",
    "SelectionFilter",
    "build_selection_filter",
    "SessionState",
    "StructurePayload",
    "StructureViewer",
]

"""
py3Dmol-backed visualization engine used by the structure viewer.

The engine is configured through a fixed call sequence: load the model, apply the
default cartoon, optionally colour by confidence and add a highlight surface, then
frame the camera. Rendering itself is left to 3Dmol.js in the browser.
"""

import asyncio
import re
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol, Set, Tuple

import numpy as np
import py3Dmol
from loguru import logger

from pdbviewer.utils.config import VisualizationConfig
from pdbviewer.utils.pdb_handler import PDBHandler
from pdbviewer.visualization.selection import SelectionFilter

# Markers of files that carry per-residue confidence (pLDDT) in the B-factor column
_CONFIDENCE_MARKERS = re.compile(r"ALPHAFOLD|PLDDT|_ma_qa_metric", re.IGNORECASE)


class StructureLoadError(RuntimeError):
    """Payload could not be turned into a displayable structure."""


class OverlayUnavailableError(RuntimeError):
    """Payload carries no confidence metrics."""


@dataclass(frozen=True)
class CameraState:
    target: Tuple[float, float, float]
    radius: float

    def scaled(self, factor: float) -> "CameraState":
        return CameraState(target=self.target, radius=self.radius * factor)


class ViewerContainer:
    """Target element the engine renders into."""

    def __init__(self, element_id: Optional[str] = None):
        self.element_id = element_id or f"viewer-{uuid.uuid4().hex[:8]}"
        self.html = ""

    @property
    def is_empty(self) -> bool:
        return not self.html

    def mount(self, html: str) -> None:
        self.html = html

    def clear(self) -> None:
        self.html = ""


class VisualizationEngine(Protocol):
    """Operations the structure viewer drives, in call order."""

    async def load_structure(self, pdb_text: str, label: str) -> None: ...

    def add_default_representation(self) -> None: ...

    async def apply_confidence_overlay(self) -> None: ...

    def highlight(self, selection: SelectionFilter) -> int: ...

    def reset_camera(self) -> CameraState: ...

    def focus(self, target: Tuple[float, float, float], radius: float) -> CameraState: ...

    def render_html(self) -> str: ...

    def dispose(self) -> None: ...


class Py3DmolEngine:
    """Drives a py3Dmol view for a single structure payload."""

    def __init__(self, container: ViewerContainer, config: VisualizationConfig, pdb_handler: PDBHandler):
        self.container = container
        self.config = config
        self.pdb_handler = pdb_handler
        self.view: Optional[py3Dmol.view] = py3Dmol.view(width=config.viewer_width, height=config.viewer_height)
        self.view.setBackgroundColor(config.background_color)

        self.pdb_text = ""
        self.camera: Optional[CameraState] = None
        self._home: Optional[CameraState] = None
        self._residue_keys: Set[Tuple[str, int]] = set()

    @property
    def disposed(self) -> bool:
        return self.view is None

    def _require_view(self) -> py3Dmol.view:
        if self.view is None:
            raise RuntimeError("Engine has been disposed")
        return self.view

    async def load_structure(self, pdb_text: str, label: str) -> None:
        """Load the payload as a model and compute the framing sphere."""
        view = self._require_view()
        structure = await asyncio.to_thread(self.pdb_handler.load_structure_from_text, pdb_text, label)
        coords = PDBHandler.atom_coordinates(structure)
        if coords.shape[0] == 0:
            raise StructureLoadError(f"No atoms found in {label}")

        view.addModel(pdb_text, "pdb")
        self.pdb_text = pdb_text
        self._residue_keys = PDBHandler.residue_keys(structure)

        centroid = coords.mean(axis=0)
        radius = float(np.linalg.norm(coords - centroid, axis=1).max())
        self._home = CameraState(target=tuple(float(c) for c in centroid), radius=max(radius, 1.0))
        logger.debug(f"Loaded {label}: {coords.shape[0]} atoms, {len(self._residue_keys)} residues")

    def add_default_representation(self) -> None:
        self._require_view().setStyle({}, {"cartoon": {"colorscheme": self.config.cartoon_color_scheme}})

    async def apply_confidence_overlay(self) -> None:
        """Colour the cartoon by pLDDT if the payload carries confidence values."""
        view = self._require_view()
        if not _CONFIDENCE_MARKERS.search(self.pdb_text):
            raise OverlayUnavailableError("No confidence metrics in payload")
        view.setStyle({}, {"cartoon": {"colorscheme": {
            "prop": "b",
            "gradient": self.config.confidence_gradient,
            "min": self.config.confidence_min,
            "max": self.config.confidence_max,
        }}})

    def highlight(self, selection: SelectionFilter) -> int:
        """Layer a surface over the selected residues; returns how many residues matched."""
        view = self._require_view()
        matched = selection.select(self._residue_keys)
        if not matched:
            return 0
        view.addSurface(
            self.config.highlight_surface_type,
            {"color": self.config.highlight_color, "opacity": self.config.highlight_opacity},
            selection.to_spec(),
        )
        return len(matched)

    def reset_camera(self) -> CameraState:
        self._require_view().zoomTo()
        if self._home is None:
            raise StructureLoadError("No structure loaded")
        self.camera = self._home
        return self.camera

    def focus(self, target: Tuple[float, float, float], radius: float) -> CameraState:
        """Move the camera to ``radius`` around ``target``."""
        view = self._require_view()
        if self.camera is not None and radius > 0:
            # 3Dmol zoom factors above 1 move the camera closer
            view.zoom(self.camera.radius / radius)
        self.camera = CameraState(target=tuple(target), radius=radius)
        return self.camera

    def render_html(self) -> str:
        return self._require_view()._make_html()

    def dispose(self) -> None:
        self.view = None
        self.camera = None
        self._residue_keys = set()

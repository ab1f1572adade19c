"""
Viewer session binding one structure payload to one live visualization engine.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Iterable, Optional, Tuple

from loguru import logger

from pdbviewer.utils.config import AppConfig
from pdbviewer.utils.pdb_handler import PDBHandler
from pdbviewer.visualization.engine import (
    CameraState,
    Py3DmolEngine,
    ViewerContainer,
    VisualizationEngine,
)
from pdbviewer.visualization.selection import SelectionFilter, SelectionInput, build_selection_filter


class SessionState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    READY = "ready"
    DISPOSED = "disposed"
    FAILED = "failed"


@dataclass(frozen=True)
class StructurePayload:
    """Raw structure file text plus the label it is displayed under."""

    text: str
    label: str

    @classmethod
    def from_identifier(cls, pdb_id: str, text: str) -> "StructurePayload":
        return cls(text=text, label=pdb_id.upper())

    @classmethod
    def from_upload(cls, filename: str, data: bytes) -> "StructurePayload":
        return cls(text=data.decode("utf-8", errors="replace"), label=filename)

    @property
    def download_name(self) -> str:
        return f"{self.label}.pdb"

    def to_bytes(self) -> bytes:
        return self.text.encode("utf-8")


@dataclass(frozen=True)
class _ActivationRequest:
    payload: StructurePayload
    selection: SelectionFilter


class _Superseded(Exception):
    """The session was torn down while an initialization was in flight."""


EngineFactory = Callable[[ViewerContainer], VisualizationEngine]

# Most recent state transitions kept for inspection
HISTORY_LIMIT = 50


class StructureViewer:
    """Owns the viewer container and at most one live engine instance.

    States: IDLE -> INITIALIZING -> READY, with DISPOSED and FAILED as transient
    states that settle back to IDLE. While INITIALIZING, a request for the same
    payload is ignored and a request for a different one is queued (latest wins)
    and started once the in-flight initialization has finished.
    """

    def __init__(self, config: Optional[AppConfig] = None,
                 engine_factory: Optional[EngineFactory] = None,
                 container: Optional[ViewerContainer] = None):
        self.config = config or AppConfig()
        self.viewer_config = self.config.visualization
        self.container = container or ViewerContainer()
        self._engine_factory = engine_factory or self._default_engine_factory

        self.state = SessionState.IDLE
        self.history: Deque[SessionState] = deque([SessionState.IDLE], maxlen=HISTORY_LIMIT)
        self.payload: Optional[StructurePayload] = None
        self.camera: Optional[CameraState] = None
        self.last_error: Optional[str] = None
        self.overlay_applied = False
        self.overlay_error: Optional[str] = None
        self.highlighted_residues = 0

        self._engine: Optional[VisualizationEngine] = None
        self._inflight: Optional[_ActivationRequest] = None
        self._pending: Optional[_ActivationRequest] = None
        self._generation = 0

    def _default_engine_factory(self, container: ViewerContainer) -> VisualizationEngine:
        return Py3DmolEngine(container, self.viewer_config, PDBHandler(self.config))

    @property
    def engine(self) -> Optional[VisualizationEngine]:
        """Handle to the live engine, if any."""
        return self._engine

    @property
    def is_ready(self) -> bool:
        return self.state is SessionState.READY

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"Viewer {self.container.element_id}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    # ------------------------------------------------------------------ lifecycle

    async def activate(self, payload: StructurePayload,
                       selections: Iterable[SelectionInput] = ()) -> SessionState:
        """
        Display a new payload, replacing whatever is currently shown.

        Args:
            payload: structure text and display label
            selections: optional chain/residue entries to highlight

        Returns:
            The session state once this call is done (INITIALIZING when the request
            was queued or ignored behind an in-flight initialization)
        """
        request = _ActivationRequest(payload=payload, selection=build_selection_filter(selections))
        if self.state is SessionState.INITIALIZING:
            if request == self._inflight:
                logger.debug(f"Ignoring repeated activation of {payload.label} while initializing")
            else:
                logger.info(f"Queued {payload.label} behind in-flight initialization")
                self._pending = request
            return self.state

        # Only the call whose initialization ran to completion drains the queue;
        # a call abandoned by teardown() leaves it to the one now in flight.
        if not await self._initialize(request):
            return self.state
        while self._pending is not None:
            request, self._pending = self._pending, None
            if not await self._initialize(request):
                break
        return self.state

    async def _initialize(self, request: _ActivationRequest) -> bool:
        """Run one initialization; returns False if it was abandoned by a teardown."""
        self._release_current()
        generation = self._generation
        payload = request.payload

        self._inflight = request
        self.last_error = None
        self.overlay_applied = False
        self.overlay_error = None
        self.highlighted_residues = 0
        self._transition(SessionState.INITIALIZING)

        engine: Optional[VisualizationEngine] = None
        try:
            engine = self._engine_factory(self.container)
            self._engine = engine
            await engine.load_structure(payload.text, payload.label)
            self._check_current(generation)
            engine.add_default_representation()

            await self._apply_optional_overlay(engine, payload)
            self._check_current(generation)

            if request.selection:
                self.highlighted_residues = engine.highlight(request.selection)
                logger.info(f"Highlighted {self.highlighted_residues} residues in {payload.label}")

            self.camera = engine.reset_camera()
            self.container.mount(engine.render_html())
        except _Superseded:
            logger.info(f"Initialization of {payload.label} superseded by teardown")
            if engine is not None:
                engine.dispose()
            return False
        except Exception as e:
            logger.error(f"Viewer initialization error for {payload.label}: {e}")
            if generation != self._generation:
                if engine is not None:
                    engine.dispose()
                return False
            self._release_engine()
            self.last_error = f"Could not display {payload.label}: {e}"
            self._inflight = None
            self._transition(SessionState.FAILED)
            self._transition(SessionState.IDLE)
            return True

        self.payload = payload
        self._inflight = None
        self._transition(SessionState.READY)
        return True

    async def _apply_optional_overlay(self, engine: VisualizationEngine, payload: StructurePayload) -> None:
        """Confidence colouring is best-effort; failure leaves the base view intact."""
        try:
            await engine.apply_confidence_overlay()
        except Exception as e:
            logger.info(f"Quality assessment not available for {payload.label}: {e}")
            self.overlay_error = str(e)
        else:
            self.overlay_applied = True

    def _check_current(self, generation: int) -> None:
        if generation != self._generation:
            raise _Superseded()

    def _release_engine(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        self.container.clear()

    def _release_current(self) -> None:
        had_engine = self._engine is not None
        self._release_engine()
        self.payload = None
        self.camera = None
        if had_engine:
            self._transition(SessionState.DISPOSED)
        if self.state is not SessionState.IDLE:
            self._transition(SessionState.IDLE)

    def teardown(self) -> None:
        """Dispose the live engine (if any), clear the container and return to IDLE.

        An in-flight initialization is abandoned and queued requests are dropped.
        """
        self._generation += 1
        self._pending = None
        self._inflight = None
        self._release_current()

    def close(self) -> None:
        """Unmount the viewer."""
        self.teardown()

    def dismiss_error(self) -> None:
        self.last_error = None

    async def __aenter__(self) -> "StructureViewer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ controls

    def _refresh(self) -> None:
        if self._engine is not None:
            self.container.mount(self._engine.render_html())

    def reset_camera(self) -> Optional[CameraState]:
        if not self.is_ready or self._engine is None:
            return None
        self.camera = self._engine.reset_camera()
        self._refresh()
        return self.camera

    def _zoom(self, factor: float) -> Optional[CameraState]:
        if not self.is_ready or self._engine is None or self.camera is None:
            return None
        self.camera = self._engine.focus(self.camera.target, self.camera.radius * factor)
        self._refresh()
        return self.camera

    def zoom_in(self) -> Optional[CameraState]:
        return self._zoom(self.viewer_config.zoom_in_factor)

    def zoom_out(self) -> Optional[CameraState]:
        # Not the exact inverse of zoom_in: 0.8 * 1.2 leaves the radius at 0.96x
        return self._zoom(self.viewer_config.zoom_out_factor)

    def download(self) -> Optional[Tuple[str, bytes]]:
        """File name and verbatim contents of the active payload."""
        if self.payload is None:
            return None
        return self.payload.download_name, self.payload.to_bytes()

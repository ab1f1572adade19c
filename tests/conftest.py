"""Shared fixtures: small PDB payloads and a recording stand-in for the viewer engine."""
import asyncio
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from pdbviewer.visualization.engine import CameraState  # noqa: E402


def atom_line(serial, name, resname, chain, resseq, x, y, z, b=20.0, element="C"):
    return (
        f"ATOM  {serial:5d} {name:<4} {resname:>3} {chain}{resseq:4d}    "
        f"{x:8.3f}{y:8.3f}{z:8.3f}{1.0:6.2f}{b:6.2f}          {element:>2}"
    )


def build_pdb(header, chains, title=None):
    lines = [header]
    if title:
        lines.append(title)
    serial = 1
    for chain, count in chains:
        offset = 0.0 if chain == "A" else 20.0
        for resseq in range(1, count + 1):
            x = resseq * 3.8
            lines.append(atom_line(serial, " N", "GLY", chain, resseq, x - 1.0, offset, 0.0, element="N"))
            serial += 1
            lines.append(atom_line(serial, " CA", "GLY", chain, resseq, x, offset, 0.0, b=70.0 + resseq))
            serial += 1
        lines.append(f"TER   {serial:5d}      GLY {chain}{count:4d}")
        serial += 1
    lines.append("END")
    return "\n".join(lines) + "\n"


@pytest.fixture
def sample_pdb_text():
    return build_pdb(
        "HEADER    PLANT PROTEIN                           30-APR-81   1CRN",
        [("A", 12), ("B", 6)],
    )


@pytest.fixture
def alphafold_pdb_text():
    return build_pdb(
        "HEADER    PREDICTED MODEL                         01-JUL-21   XXXX",
        [("A", 8)],
        title="TITLE     ALPHAFOLD MONOMER V2.0 PREDICTION FOR TEST PROTEIN",
    )


class FakeEngine:
    """Records the calls the viewer makes and whether it is still live."""

    def __init__(self, recorder, container):
        self.recorder = recorder
        self.container = container
        self.index = len(recorder.engines)
        self.calls = []
        self.disposed = False
        self.label = None
        self.camera = None

    async def load_structure(self, pdb_text, label):
        self.label = label
        self.calls.append("load")
        gate = self.recorder.gates.get(self.index)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        if self.recorder.fail_load:
            raise ValueError("bad payload")

    def add_default_representation(self):
        self.calls.append("cartoon")

    async def apply_confidence_overlay(self):
        self.calls.append("overlay")
        if self.recorder.fail_overlay:
            raise RuntimeError("no confidence metrics")

    def highlight(self, selection):
        self.calls.append("highlight")
        return len(selection.select(self.recorder.residue_keys))

    def reset_camera(self):
        self.calls.append("reset")
        self.camera = CameraState(target=(1.0, 2.0, 3.0), radius=self.recorder.radius)
        return self.camera

    def focus(self, target, radius):
        self.calls.append("focus")
        self.camera = CameraState(target=tuple(target), radius=radius)
        return self.camera

    def render_html(self):
        return f"<div id='{self.container.element_id}'>{self.label}</div>"

    def dispose(self):
        self.disposed = True


class EngineRecorder:
    """Engine factory handing out FakeEngines."""

    def __init__(self):
        self.engines = []
        self.gates = {}
        self.fail_load = False
        self.fail_overlay = True
        self.radius = 25.0
        self.residue_keys = {("A", 5), ("A", 10), ("A", 11), ("B", 5), ("B", 10)}

    def __call__(self, container):
        engine = FakeEngine(self, container)
        self.engines.append(engine)
        return engine

    @property
    def live(self):
        return sum(not e.disposed for e in self.engines)


@pytest.fixture
def engine_recorder():
    return EngineRecorder()

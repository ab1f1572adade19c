"""PDB Structure Viewer: retrieval proxy and 3D viewer harness."""

__version__ = "1.0.0"

"""
PDB file retrieval and lightweight structure handling for the PDB Structure Viewer.
"""

import io
import warnings
from typing import Optional, Set, Tuple

import httpx
import numpy as np
from Bio.PDB import Structure
from Bio.PDB.PDBParser import PDBParser
from loguru import logger

from pdbviewer.utils.config import AppConfig, ProxyConfig

# Suppress Bio warnings
warnings.filterwarnings("ignore", module="Bio")


class InvalidIdentifierError(ValueError):
    """Identifier is absent or has the wrong length."""


class StructureNotFoundError(LookupError):
    """Upstream repository has no entry for the identifier."""

    def __init__(self, pdb_id: str):
        super().__init__(f'PDB ID "{pdb_id}" not found')
        self.pdb_id = pdb_id


class UpstreamError(RuntimeError):
    """Any other upstream or transport failure."""


def normalize_pdb_id(pdb_id: Optional[str], length: int = 4) -> str:
    """Validate an identifier's shape and return it upper-cased.

    Only the length is checked; character set is left to the upstream repository.
    """
    if not pdb_id or len(pdb_id) != length:
        raise InvalidIdentifierError(f"Invalid PDB ID. Must be {length} characters long.")
    return pdb_id.upper()


class PDBHandler:
    """Handles PDB file retrieval from RCSB and parsing for viewer framing."""

    def __init__(self, config: AppConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.proxy_config: ProxyConfig = config.proxy
        self.parser = PDBParser(QUIET=True)
        # Injected transport lets tests replace the network
        self.transport = transport

    async def fetch_pdb_text(self, pdb_id: str) -> str:
        """
        Fetch the raw PDB text for an identifier from the upstream repository.

        Args:
            pdb_id: 4-character PDB identifier, any case

        Returns:
            The upstream body, unmodified

        Raises:
            InvalidIdentifierError: identifier absent or not 4 characters
            StructureNotFoundError: upstream answered 404
            UpstreamError: any other upstream status or transport failure
        """
        pid = normalize_pdb_id(pdb_id, self.proxy_config.identifier_length)
        url = self.proxy_config.upstream_url(pid)
        try:
            async with httpx.AsyncClient(timeout=self.proxy_config.upstream_timeout_seconds,
                                         transport=self.transport) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"Failed to download {pid}: {e}")
            raise UpstreamError(f"Failed to fetch PDB data: {e}") from e

        if response.status_code == 404:
            logger.info(f"PDB ID {pid} not found upstream")
            raise StructureNotFoundError(pid)
        if not response.is_success:
            logger.error(f"Upstream returned {response.status_code} for {pid}")
            raise UpstreamError(f"Failed to fetch PDB data: {response.reason_phrase}")

        logger.info(f"Fetched {pid} ({len(response.text)} characters)")
        return response.text

    def load_structure_from_text(self, pdb_text: str, structure_id: str = "structure") -> Structure.Structure:
        """Parse PDB text into a Biopython structure."""
        return self.parser.get_structure(structure_id, io.StringIO(pdb_text))

    @staticmethod
    def atom_coordinates(structure: Structure.Structure) -> np.ndarray:
        """Return an (N, 3) float array of all atom coordinates."""
        coords = [atom.get_coord() for atom in structure.get_atoms()]
        if not coords:
            return np.zeros((0, 3), dtype=float)
        return np.asarray(coords, dtype=float)

    @staticmethod
    def residue_keys(structure: Structure.Structure) -> Set[Tuple[str, int]]:
        """Return (chain id, residue sequence number) pairs present in the first model."""
        keys: Set[Tuple[str, int]] = set()
        models = list(structure)
        if not models:
            return keys
        for chain in models[0]:
            for residue in chain:
                keys.add((chain.id, residue.id[1]))
        return keys

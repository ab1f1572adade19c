"""
Client used by the UI to retrieve structures through the retrieval proxy.
"""

from typing import Optional

import requests
from loguru import logger

from pdbviewer.utils.settings import get_settings


class StructureFetchError(Exception):
    """Fetch failed; the message is meant to be shown to the user."""


class ProxyClient:
    """Fetches structure text from ``GET {base_url}/api/pdb/{id}``."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self.session = session or requests.Session()

    def fetch_structure(self, pdb_id: str) -> str:
        """
        Fetch the structure file text for an identifier.

        Raises:
            StructureFetchError: with a human-readable message
        """
        if not pdb_id or not pdb_id.strip():
            raise StructureFetchError("Please enter a valid PDB ID")

        url = f"{self.base_url}/api/pdb/{pdb_id.strip().lower()}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Proxy request for {pdb_id} failed: {e}")
            raise StructureFetchError(f"Failed to fetch PDB data: {e}") from e

        if response.status_code == 404:
            raise StructureFetchError(f'PDB ID "{pdb_id}" not found. Please check the ID and try again.')
        if not response.ok:
            raise StructureFetchError(f"Failed to fetch PDB data: {self._reason(response)}")
        return response.text

    @staticmethod
    def _reason(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return response.reason or f"HTTP {response.status_code}"

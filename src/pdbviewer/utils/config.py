"""
Configuration management for the PDB Structure Viewer.
"""

from dataclasses import dataclass, field
from typing import List
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class ProxyConfig:
    """Configuration for the retrieval proxy."""

    upstream_base_url: str = "https://files.rcsb.org/download"
    upstream_timeout_seconds: float = 30.0
    identifier_length: int = 4
    cache_max_age_seconds: int = 3600

    def upstream_url(self, pdb_id: str) -> str:
        return f"{self.upstream_base_url.rstrip('/')}/{pdb_id}.pdb"

    @property
    def cache_control(self) -> str:
        return f"public, max-age={self.cache_max_age_seconds}"


@dataclass
class VisualizationConfig:
    """Configuration for visualization settings."""

    viewer_width: int = 800
    viewer_height: int = 600
    background_color: str = "#ffffff"
    cartoon_color_scheme: str = "chain"

    # Highlight surface for caller-specified residues
    highlight_surface_type: str = "MS"
    highlight_color: str = "#0066cc"
    highlight_opacity: float = 0.8

    # Confidence (pLDDT) overlay, values read from the B-factor column
    confidence_gradient: str = "roygb"
    confidence_min: float = 50.0
    confidence_max: float = 90.0

    # Camera radius multipliers
    zoom_in_factor: float = 0.8
    zoom_out_factor: float = 1.2

    example_ids: List[str] = field(default_factory=lambda: ["1CRN", "3J3Q", "6M0J", "1BNA", "2HHB"])


@dataclass
class AppConfig:
    """Main application configuration."""

    # Shown as the UI title and in the API root document
    app_name: str = "PDB Structure Viewer"

    # Component configurations
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)

    def __post_init__(self):
        """Apply environment overrides after object creation."""
        upstream = os.getenv("PDBVIEWER_UPSTREAM_URL")
        if upstream:
            self.proxy.upstream_base_url = upstream


def load_config() -> AppConfig:
    """Load application configuration."""
    return AppConfig()

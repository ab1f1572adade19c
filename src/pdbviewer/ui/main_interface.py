"""
Main user interface for the PDB Structure Viewer.
"""

import asyncio
from typing import Any, MutableMapping, Optional

import streamlit as st
import streamlit.components.v1 as components
from loguru import logger

from pdbviewer.utils.api_client import ProxyClient, StructureFetchError
from pdbviewer.utils.config import AppConfig
from pdbviewer.visualization.selection import parse_selection_text
from pdbviewer.visualization.structure_viewer import (
    EngineFactory,
    StructurePayload,
    StructureViewer,
)


class MainInterface:
    """Streamlit UI: search, upload and example inputs feeding one structure viewer."""

    def __init__(self, config: AppConfig,
                 client: Optional[ProxyClient] = None,
                 engine_factory: Optional[EngineFactory] = None,
                 state: Optional[MutableMapping[str, Any]] = None):
        self.config = config
        self.client = client or ProxyClient()
        self.engine_factory = engine_factory
        # st.session_state in the app; a plain dict in tests
        self.state = state if state is not None else st.session_state

        self.state.setdefault("error", None)
        self.state.setdefault("highlight", "")
        self.state.setdefault("last_upload", None)
        if "viewer" not in self.state:
            self.state["viewer"] = StructureViewer(config, engine_factory=engine_factory)

    @property
    def viewer(self) -> StructureViewer:
        return self.state["viewer"]

    # ------------------------------------------------------------------ actions

    def _selections(self):
        text = self.state.get("highlight") or ""
        try:
            return parse_selection_text(text)
        except ValueError as e:
            self.state["error"] = f"Invalid highlight selection: {e}"
            return []

    def _activate(self, payload: StructurePayload) -> None:
        asyncio.run(self.viewer.activate(payload, self._selections()))
        if self.viewer.last_error:
            logger.warning(self.viewer.last_error)

    def _load_identifier(self, pdb_id: str) -> bool:
        """Fetch through the proxy and display; returns False on fetch errors."""
        self.state["error"] = None
        # the previous structure is cleared before every fetch
        self.viewer.teardown()
        self.viewer.dismiss_error()
        try:
            text = self.client.fetch_structure(pdb_id)
        except StructureFetchError as e:
            self.state["error"] = str(e)
            return False
        self._activate(StructurePayload.from_identifier(pdb_id, text))
        return True

    def _load_upload(self, filename: str, data: bytes) -> None:
        """Display a local file; the proxy is not involved."""
        self.state["error"] = None
        self._activate(StructurePayload.from_upload(filename, data))

    # ------------------------------------------------------------------ rendering

    def render(self):
        st.title(self.config.app_name)
        st.write("Enter a PDB ID to visualize protein structures using 3Dmol.js")

        self._render_search()
        self._render_error()
        self._render_viewer()

    def _render_search(self):
        st.subheader("🔍 Search Structure")
        st.caption("Enter a 4-character PDB ID (e.g., 1CRN, 3J3Q, 6M0J) or upload a file")

        with st.form(key="pdb_search_form", clear_on_submit=False):
            pdb_id = st.text_input(
                "PDB ID:",
                placeholder="Enter PDB ID (e.g., 1CRN)",
                max_chars=self.config.proxy.identifier_length,
            ).upper()
            st.text_input(
                "Highlight residues:",
                key="highlight",
                placeholder="e.g., A:10,11; B:5",
                help="Chain and residue numbers to show as a surface",
            )
            submitted = st.form_submit_button("Visualize", type="primary")

        if submitted:
            with st.spinner("Fetching PDB data..."):
                self._load_identifier(pdb_id)

        uploaded = st.file_uploader("Upload PDB", type=["pdb"])
        if uploaded is not None:
            upload_key = (uploaded.name, uploaded.size)
            if upload_key != self.state.get("last_upload"):
                self.state["last_upload"] = upload_key
                self._load_upload(uploaded.name, uploaded.getvalue())

        st.write("Try examples:")
        columns = st.columns(len(self.config.visualization.example_ids))
        for column, example_id in zip(columns, self.config.visualization.example_ids):
            with column:
                if st.button(example_id, key=f"example_{example_id}"):
                    with st.spinner("Fetching PDB data..."):
                        self._load_identifier(example_id)

    def _render_error(self):
        if self.state.get("error"):
            st.error(self.state["error"])
            if st.button("Dismiss", key="dismiss_error"):
                self.state["error"] = None
                st.rerun()

    def _render_viewer(self):
        viewer = self.viewer
        if viewer.last_error:
            st.error(f"❌ {viewer.last_error}")
            if st.button("Dismiss", key="dismiss_viewer_error"):
                viewer.dismiss_error()
                st.rerun()
        if not viewer.is_ready or viewer.payload is None:
            return

        st.subheader(f"Structure Visualization - {viewer.payload.label}")
        if viewer.overlay_applied:
            st.caption("Coloured by model confidence (pLDDT)")

        col1, col2, col3, col4 = st.columns(4)
        with col1:
            if st.button("Reset View"):
                viewer.reset_camera()
        with col2:
            if st.button("Zoom In"):
                viewer.zoom_in()
        with col3:
            if st.button("Zoom Out"):
                viewer.zoom_out()
        with col4:
            download = viewer.download()
            if download:
                file_name, data = download
                st.download_button("Download PDB", data, file_name, "text/plain")

        components.html(viewer.container.html, height=self.config.visualization.viewer_height + 50)

"""PDB Structure Viewer - Main Streamlit Application

Run with ``streamlit run server.py``. The retrieval proxy must be reachable at
PDBVIEWER_API_BASE_URL (``pdbviewer-api`` starts it on port 8000).

Environment tweaks for resource-constrained dev systems:
- Force Streamlit file watcher to 'poll' to avoid inotify instance exhaustion.
"""

import os
os.environ.setdefault("STREAMLIT_SERVER_FILE_WATCHER_TYPE", "poll")
import streamlit as st

from pdbviewer.utils.config import load_config
from pdbviewer.utils.logging_config import configure_logging
from pdbviewer.utils.settings import get_settings
from pdbviewer.ui.main_interface import MainInterface

# Configure Streamlit page
st.set_page_config(
    page_title="PDB Structure Viewer",
    page_icon="🧬",
    layout="wide",
    menu_items={
        'About': """
        # PDB Structure Viewer

        Fetch structures from the RCSB Protein Data Bank or upload a PDB file
        and explore them in an interactive 3D viewer.
        """
    }
)


def initialize_app():
    """Initialize application components."""
    if 'app_initialized' not in st.session_state:
        settings = get_settings()
        configure_logging(json_logs=settings.json_logging, level=settings.log_level)

        config = load_config()
        st.session_state.config = config
        st.session_state.main_interface = MainInterface(config)
        st.session_state.app_initialized = True


def main():
    """Main application entry point."""
    initialize_app()

    st.markdown("""
    <style>
    .main > div { padding-top: 2rem; }
    .stAlert { margin-top: 1rem; }
    .stApp { background: linear-gradient(135deg, #eff6ff 0%, #e0e7ff 100%); }
    </style>
    """, unsafe_allow_html=True)

    st.session_state.main_interface.render()


if __name__ == "__main__":
    main()

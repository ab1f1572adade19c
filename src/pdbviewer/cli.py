"""Command-line interface for the PDB Structure Viewer.

Examples:
    pdbviewer fetch 1CRN -o 1crn.pdb
    pdbviewer render 1CRN --highlight "A:10,11;B:5" -o 1crn.html
    pdbviewer render my_model.pdb
"""
from __future__ import annotations
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from pdbviewer.utils.config import AppConfig, load_config
from pdbviewer.utils.logging_config import configure_logging
from pdbviewer.utils.pdb_handler import (
    InvalidIdentifierError,
    PDBHandler,
    StructureNotFoundError,
    UpstreamError,
)
from pdbviewer.utils.settings import get_settings
from pdbviewer.visualization.selection import parse_selection_text
from pdbviewer.visualization.structure_viewer import StructurePayload, StructureViewer


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("pdbviewer")
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="Download a structure file from RCSB")
    fetch.add_argument("pdb_id", help="4-character PDB ID")
    fetch.add_argument("-o", "--output", help="Output file (default: <ID>.pdb, '-' for stdout)")

    render = sub.add_parser("render", help="Write a standalone HTML viewer page")
    render.add_argument("source", help="Path to a PDB file or a 4-character PDB ID")
    render.add_argument("--highlight", default="", help="Residues to highlight, e.g. 'A:10,11;B:5'")
    render.add_argument("-o", "--output", help="Output HTML file (default: <label>.html)")
    return parser.parse_args(argv)


def _fetch_text(config: AppConfig, pdb_id: str) -> str:
    return asyncio.run(PDBHandler(config).fetch_pdb_text(pdb_id))


def _cmd_fetch(config: AppConfig, args: argparse.Namespace) -> int:
    text = _fetch_text(config, args.pdb_id)
    if args.output == "-":
        sys.stdout.write(text)
        return 0
    out = Path(args.output or f"{args.pdb_id.upper()}.pdb")
    out.write_text(text)
    print(f"Wrote {out} ({len(text)} characters)")
    return 0


def _cmd_render(config: AppConfig, args: argparse.Namespace) -> int:
    source = Path(args.source)
    if source.is_file():
        payload = StructurePayload.from_upload(source.name, source.read_bytes())
    else:
        payload = StructurePayload.from_identifier(args.source, _fetch_text(config, args.source))

    try:
        selections = parse_selection_text(args.highlight)
    except ValueError as e:
        print(f"Invalid --highlight: {e}")
        return 1

    viewer = StructureViewer(config)
    asyncio.run(viewer.activate(payload, selections))
    if not viewer.is_ready:
        print(viewer.last_error or f"Failed to render {payload.label}")
        return 3

    out = Path(args.output or f"{payload.label}.html")
    out.write_text(viewer.container.html)
    print(f"Wrote {out}")
    viewer.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(json_logs=settings.json_logging, level=settings.log_level)
    config = load_config()

    try:
        if args.command == "fetch":
            return _cmd_fetch(config, args)
        return _cmd_render(config, args)
    except InvalidIdentifierError as e:
        print(str(e))
        return 1
    except StructureNotFoundError as e:
        print(str(e))
        return 2
    except UpstreamError as e:
        logger.error(str(e))
        print(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())

"""
Command-line interface.

Builds the reference hexasphere, optionally loads an assignment feed or a
saved session, and prints the tile statistics. With --show the tiles are
displayed in a PyVista window, coloured by state, with the selection's
projected UVs applied.
"""
from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from hexterritory import config
from hexterritory.controller.editor import TerritoryEditor
from hexterritory.logging_config import setup_logging
from hexterritory.model.graph import TileGraph
from hexterritory.model.io import IOManager
from hexterritory.model.pattern import TextureRef
from hexterritory.model.tessellation import generate_hexasphere
from hexterritory.model.tile_state import PatternPreview
from hexterritory.view.render_adapter import PatternRenderAdapter
from hexterritory.view.vtk_utils import VtkUtils

logger = logging.getLogger("hexterritory.cli")


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="hexterritory", description=__doc__.splitlines()[1])
    parser.add_argument("--subdivisions", type=int, default=config.SUBDIVISIONS)
    parser.add_argument("--radius", type=float, default=config.SPHERE_RADIUS)
    parser.add_argument("--feed", help="JSON assignment feed (owner id -> record, or list of sponsors).")
    parser.add_argument("--session", help="Saved .h5 session to resume.")
    parser.add_argument("--owner", help="Owner id being edited; its own tiles are not treated as taken.")
    parser.add_argument("--pattern", help="Pattern image to preview on the selection.")
    parser.add_argument("--save", help="Write the resulting session to this .h5 file.")
    parser.add_argument("--show", action="store_true", help="Open a PyVista window.")
    parser.add_argument("--strict", action="store_true", help="Raise on a broken selection invariant.")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--log-file")
    return parser.parse_args(argv)


def _show(editor: TerritoryEditor) -> None:
    import pyvista as pv

    tiles = editor.tile_graph.tiles
    plotter = pv.Plotter()
    visuals = editor.visuals()
    frontier = editor.selection.selectable_frontier()

    # Flat-coloured tiles, grouped by colour to keep the actor count small
    by_color: dict[int, list[int]] = {}
    for index, visual in visuals.items():
        if isinstance(visual, PatternPreview):
            continue
        color = PatternRenderAdapter.tile_color(visual, editor.highlight(index, frontier))
        by_color.setdefault(color, []).append(index)
    for color, indices in by_color.items():
        plotter.add_mesh(VtkUtils.tiles_to_polydata(tiles, indices), color=f"#{color:06x}")

    uvs = editor.projection.uvs
    if uvs and editor.pattern is not None:
        mesh = VtkUtils.tiles_to_polydata(tiles, uvs.keys(), uvs)
        texture = pv.read_texture(editor.pattern.source)
        texture.repeat = True
        plotter.add_mesh(mesh, texture=texture)

    plotter.add_mesh(VtkUtils.outline_polydata(tiles, editor.selection.selected), color="white", line_width=2)
    plotter.show()


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    setup_logging(level=logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)

    # 1. Tiles (from a session, or freshly generated)
    session = IOManager.load_session(args.session) if args.session else None
    tiles = session.tiles if session else generate_hexasphere(args.radius, args.subdivisions)
    tile_graph = TileGraph.build(tiles)

    # 2. Editing session
    editor = TerritoryEditor(tile_graph, strict=args.strict or None)
    feed = IOManager.load_feed(args.feed) if args.feed else None
    owner = args.owner or (session.owner_id if session else None)
    if session is not None and feed is None:
        editor.assignments.set_assigned(session.assignments)
    editor.switch_context(owner, session.selected if session else (), feed)

    if args.pattern:
        editor.set_pattern_preview(TextureRef(source=args.pattern))

    logger.info(
        f"{len(tile_graph)} tiles, {len(tile_graph.selectable_tiles())} selectable, "
        f"{len(editor.assignments)} assigned to {len(editor.assignments.owners())} owners, "
        f"{len(editor.selection)} selected."
    )

    if args.save:
        IOManager.save_session(
            args.save,
            tile_graph.tiles,
            editor.selected_indices(),
            editor.assignments.tile_map(),
            owner_id=editor.owner_id,
        )

    if args.show:
        _show(editor)


if __name__ == "__main__":
    main()

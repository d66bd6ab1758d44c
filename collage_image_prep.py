#!/usr/bin/env python3
"""
Playtime Collage - Command Line Application
Packs owned game libraries into a collage where playtime sets cell size.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from collage_core import CollagePacker, CollageRenderer, LayoutSpec, SizeSpec, canvas_size
from collage_core.library import load_owned_games, aggregate_libraries, load_completed_ids
from collage_core.logger import setup_logging, generate_log_filename, generate_png_filename
from collage_core.renderer import header_height_for


def build_parser() -> argparse.ArgumentParser:
    """Command line options."""
    parser = argparse.ArgumentParser(description="Render a playtime-weighted game collage.")
    parser.add_argument("libraries", nargs="+", type=Path,
                        help="Owned-games JSON files, one per account")
    parser.add_argument("--covers", type=Path, default=None,
                        help="Directory with cover images named <id>.jpg")
    parser.add_argument("--output", type=Path, default=None,
                        help="Output PNG path (default: generated name in the current directory)")
    parser.add_argument("--name", default="collage", help="Project name for output and log files")
    parser.add_argument("--profile", default="", help="Profile name shown in the header bar")
    parser.add_argument("--mode", choices=["freerect", "grid"], default="freerect")
    parser.add_argument("--scale", choices=["tiered", "linear"], default="tiered")
    parser.add_argument("--split", choices=["horizontal", "vertical"], default="horizontal")
    parser.add_argument("--no-jitter", action="store_true", help="Disable id-based reordering")
    parser.add_argument("--header", action="store_true", help="Reserve an info bar at the top")
    parser.add_argument("--completed", type=int, nargs="*", default=[],
                        help="Game ids with every achievement unlocked")
    parser.add_argument("--achievements", type=Path, nargs="*", default=[],
                        help="Player-achievement JSON files; fully unlocked games get a gold border")
    parser.add_argument("--preview", action="store_true", help="Write a downscaled preview instead")
    parser.add_argument("--log-dir", type=Path, default=None, help="Directory for the project log")
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    """Main entry point for Playtime Collage."""
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    logger = logging.getLogger("collage_image_prep")
    
    try:
        games = aggregate_libraries(load_owned_games(path) for path in args.libraries)
        completed_ids = set(args.completed) | load_completed_ids(args.achievements)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load game data: {e}")
        return 1
    
    header = header_height_for(canvas_size(len(games))[1]) if args.header else 0
    layout_spec = LayoutSpec(mode=args.mode, split=args.split, jitter=not args.no_jitter,
                             header_height=header)
    packer = CollagePacker(layout_spec=layout_spec, size_spec=SizeSpec(scale=args.scale))
    result = packer.layout(games)
    
    output_path = args.output or Path(generate_png_filename(
        args.name, len(games), (result.canvas_width, result.canvas_height)))
    log_path = None
    if args.log_dir:
        args.log_dir.mkdir(parents=True, exist_ok=True)
        log_path = args.log_dir / generate_log_filename(args.name, args.preview)
    
    renderer = CollageRenderer(cover_dir=args.covers, completed_ids=completed_ids,
                               profile_name=args.profile)
    started = datetime.now()
    try:
        if args.preview:
            renderer.generate_preview(result, output_path)
        else:
            renderer.render(result, output_path, log_path=log_path, project_name=args.name)
    except OSError as e:
        logger.error(f"Could not write collage: {e}")
        return 1
    
    logger.info(f"Done in {(datetime.now() - started).total_seconds():.2f}s: "
                f"{result.placed_count} placed, {result.dropped_count} dropped")
    return 0


if __name__ == "__main__":
    sys.exit(main())

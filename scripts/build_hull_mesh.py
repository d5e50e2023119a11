#!/usr/bin/env python3
"""
Build the lofted mesh of one adjustable hull segment and write it to disk.

Usage:
    python scripts/build_hull_mesh.py --output hull.stl
    python scripts/build_hull_mesh.py --output hull.obj --front-width 2 --back-width 1.5 --top-roundness 1
    python scripts/build_hull_mesh.py --output hull.ply --hull-json hull.json --resolution 48
"""
import sys
import os
import json
import argparse
import logging
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hull_mesh import DEFAULT_RESOLUTION, build_hull_mesh
from hull_parts import AdjustableHull, HullAttribute


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Write the mesh of an adjustable hull segment (STL, OBJ, PLY).",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output mesh path; the format follows the extension",
    )
    parser.add_argument(
        "--hull-json", default=None,
        help="JSON file of hull attributes keyed by save names (e.g. frontWidth)",
    )
    for attr in HullAttribute:
        parser.add_argument(
            f"--{attr.field_name.replace('_', '-')}", dest=attr.field_name,
            type=float, default=None,
            help=f"Override {attr.value}",
        )
    parser.add_argument(
        "--resolution", type=int, default=DEFAULT_RESOLUTION,
        help=f"Samples per cross-section (default: {DEFAULT_RESOLUTION})",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    hull = AdjustableHull()
    if args.hull_json:
        hull_path = os.path.abspath(args.hull_json)
        if not os.path.isfile(hull_path):
            parser.error(f"Hull file not found: {hull_path}")
        with open(hull_path) as f:
            hull = AdjustableHull.from_dict(json.load(f))
    for attr in HullAttribute:
        value = getattr(args, attr.field_name)
        if value is not None:
            hull.set(attr, value)

    try:
        mesh = build_hull_mesh(hull, args.resolution)
    except ValueError as exc:
        parser.error(str(exc))

    output_path = os.path.abspath(args.output)
    os.makedirs(os.path.dirname(output_path), exist_ok=True)
    mesh.export(output_path)

    print(f"Hull: {json.dumps(hull.to_dict())}")
    print(f"  Vertices: {len(mesh.vertices)}  Faces: {len(mesh.faces)}")
    print(f"  Watertight: {mesh.is_watertight}")
    print(f"Saved to {output_path}")


if __name__ == "__main__":
    main()

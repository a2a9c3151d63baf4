"""Print the contents of a MagicaVoxel .vox file.

It's not intended to be useful; simply a quick way to look at what the parser
makes of a file.

Usage:

    voxtext myfile.vox
"""

import argparse
import logging
import sys
from typing import Optional, TextIO

from voxscene.errors import VoxError
from voxscene.voxfile import VoxFile


def print_vox_file(vox_file: VoxFile, out: Optional[TextIO] = None):
    if out is None:
        out = sys.stdout
    print("scene:", file=out)
    for depth, node in vox_file.scene.walk():
        print(f"{'  ' * (depth + 2)}{node}", file=out)

    print("\nlayers:", file=out)
    for layer in vox_file.scene.layers:
        hidden = " (hidden)" if layer.hidden else ""
        print(f"    {layer.index}: {layer.name!r}{hidden}", file=out)

    print("\nmodels:", file=out)
    for i, model in enumerate(vox_file.models):
        print(f"    {i}: {model}", file=out)

    print("\nmaterials:", file=out)
    for i, material in enumerate(vox_file.materials):
        print(f"{i:3d}: {material}", file=out)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Print the contents of a .vox file")
    parser.add_argument("path", help="Path to the .vox file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log parser details"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        vox_file = VoxFile.read(args.path)
    except (OSError, VoxError) as e:
        print(f"Error parsing file: {e}", file=sys.stderr)
        return 1

    print_vox_file(vox_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())

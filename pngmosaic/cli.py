"""Command line driver: build_mosaic.py <target> <output> <tiles_dir> [options]

This is the only place where a pipeline failure becomes an exit status.
"""

import argparse
import logging
import sys

from .config import (DEF_CHUNK_SIZE, DEF_TILE_CHUNK_SIZE, DEF_TILE_SIZE, MATCH_METHODS, TILE_MODES,
                     EdgePolicy, MosaicConfig)
from .errors import MosaicError
from .pngmosaic import MosaicMaker

logger = logging.getLogger("pngmosaic")


def _setup_logging(debug=False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Script to build a photomosaic from a directory of square PNG tiles',
        fromfile_prefix_chars='@')
    parser.add_argument("input_image", help="input (target) PNG image path")
    parser.add_argument("output_image", help="output PNG filename")
    parser.add_argument("tiles_dir", help="path to a directory containing the tiles")
    parser.add_argument("--chunk-size", dest="chunk_size", default=DEF_CHUNK_SIZE, type=int,
                        help="Starting guess for the block size of the input image, in pixels. "
                        "The smallest size >= this value dividing both image sides is used. Default: %(default)s")
    parser.add_argument("--tile-size", dest="tile_size", default=DEF_TILE_SIZE, type=int,
                        help="Side of the (square) tiles in pixels. Other images are ignored. Default: %(default)s")
    parser.add_argument("--tile-chunk-size", dest="tile_chunk_size", default=DEF_TILE_CHUNK_SIZE, type=int,
                        help="Starting guess for the block size used to average the tiles. Default: %(default)s")
    parser.add_argument("--method", dest="method", default="brute-force", choices=MATCH_METHODS,
                        help="Method used to find the nearest neighbors in RGB space. 'kdtree' resolves equally near "
                        "tiles one color at a time, so palettes with many ties are faster with "
                        "'brute-force'. Default: %(default)s")
    parser.add_argument("--edge-policy", dest="edge_policy", default=EdgePolicy.EXACT.value,
                        choices=[p.value for p in EdgePolicy],
                        help="'exact' negotiates a block size dividing the image, 'pad-partial' uses "
                        "--chunk-size as is and averages the partial blocks at the edges. Default: %(default)s")
    parser.add_argument("--tile-mode", dest="tile_mode", default="full", choices=TILE_MODES,
                        help="'full' pastes the tiles at full resolution, 'pixelated' pastes their "
                        "block averages. Default: %(default)s")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    if len(argv) < 3:
        return 0

    args = parse_args(argv)
    _setup_logging(args.debug)

    try:
        config = MosaicConfig(chunk_size=args.chunk_size,
                              tile_chunk_size=args.tile_chunk_size,
                              tile_size=args.tile_size,
                              edge_policy=EdgePolicy(args.edge_policy),
                              method=args.method,
                              tile_mode=args.tile_mode)
        m = MosaicMaker(input_image=args.input_image,
                        tiles_dir=args.tiles_dir,
                        target_image=args.output_image,
                        config=config)
        m.build_mosaic()
    except (MosaicError, OSError, ValueError) as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

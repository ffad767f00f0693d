"""Expansion of a matched block grid into the full resolution mosaic.

The output is built as a flat raster buffer. Output row r crosses every
block of block row r // T, and for each of them holds row r % T of the
matched tile, so row 0 of all the tiles of a block row comes before any
tile's row 1.
"""

import logging

import numba as nb
import numpy as np

from .errors import EmptyCatalog

logger = logging.getLogger(__name__)


@nb.njit
def block_index_of(bx, by, blocks_wide):
    """Flat index of block (bx, by) in a row-major grid."""
    return by * blocks_wide + bx


@nb.njit
def row_offset_of(block_col, super_row, blocks_wide, tile_side, channels):
    """Byte offset in the output buffer where a tile row of block column
    block_col starts on output row super_row."""
    return (super_row * blocks_wide * tile_side + block_col * tile_side) * channels


@nb.njit(parallel=True)
def _compose_rows(tile_indices, tiles, blocks_wide, blocks_high, out):
    tile_side = tiles.shape[1]
    channels = tiles.shape[3]

    for i in nb.prange(blocks_high * tile_side):
        r = np.int64(i)
        by = r // tile_side
        tile_row = r % tile_side
        for bx in range(blocks_wide):
            t = tile_indices[block_index_of(bx, by, blocks_wide)]
            start = row_offset_of(bx, r, blocks_wide, tile_side, channels)
            for p in range(tile_side):
                for c in range(channels):
                    out[start + p * channels + c] = tiles[t, tile_row, p, c]

    return out


def compose_mosaic(matched, catalog):
    """Paste the catalog tile of each block color of matched.

    Every color of matched must be a catalog key (the output of
    match_palette). Returns a (blocks_high * T, blocks_wide * T, C) array,
    T being the catalog tile side.
    """
    if len(catalog) == 0:
        raise EmptyCatalog("Cannot compose a mosaic from an empty catalog")
    if matched.channels != catalog.channels:
        raise ValueError("Grid has {} channels but catalog tiles have {}".format(matched.channels, catalog.channels))

    tile_side = catalog.tile_side
    channels = catalog.channels
    mosaic_shape = (matched.blocks_high * tile_side,
                    matched.blocks_wide * tile_side,
                    channels)
    logger.info("Mosaic will be made of %dx%d = %d tiles", matched.blocks_wide, matched.blocks_high,
                matched.blocks_wide * matched.blocks_high)
    logger.info("Its size in pixels will be %dx%d", mosaic_shape[1], mosaic_shape[0])

    # Stack only the matched tiles and renumber the blocks against that stack
    used, tile_indices = np.unique(catalog.indices_of(matched.colors).reshape(-1), return_inverse=True)
    tile_indices = tile_indices.reshape(-1).astype(np.int64)
    out = np.zeros(int(np.prod(mosaic_shape)), dtype=np.uint8)
    _compose_rows(tile_indices, catalog.tile_stack(used), matched.blocks_wide, matched.blocks_high, out)

    return out.reshape(mosaic_shape)

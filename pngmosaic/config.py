"""Mosaic configuration: block sizes, tile geometry and matching options."""

from dataclasses import dataclass
from enum import Enum


class EdgePolicy(Enum):
    """How pixelation treats image sides that the block size does not divide."""

    EXACT = "exact"
    PAD_PARTIAL = "pad-partial"


MATCH_METHODS = ("brute-force", "kdtree")
TILE_MODES = ("full", "pixelated")

# Reference geometry of the candidate tiles: 416px squares averaged in 52px blocks
DEF_TILE_SIZE = 416
DEF_TILE_CHUNK_SIZE = 52
DEF_CHUNK_SIZE = 4
DEF_CHANNELS = 3


@dataclass
class MosaicConfig:
    """Parameters of one mosaic run.

    chunk_size: starting guess for the block size of the target image
    tile_chunk_size: starting guess for the block size used to average tiles
    tile_size: side length, in pixels, a candidate tile must have
    channels: number of color channels kept in averages and in the output (RGB)
    edge_policy: EXACT requires the block size to divide the target,
        PAD_PARTIAL averages the trailing partial blocks on their own
    method: nearest color search, 'brute-force' or 'kdtree'
    tile_mode: 'full' pastes the tiles at full resolution, 'pixelated'
        pastes their block averages (one pixel per tile block)
    """

    chunk_size: int = DEF_CHUNK_SIZE
    tile_chunk_size: int = DEF_TILE_CHUNK_SIZE
    tile_size: int = DEF_TILE_SIZE
    channels: int = DEF_CHANNELS
    edge_policy: EdgePolicy = EdgePolicy.EXACT
    method: str = "brute-force"
    tile_mode: str = "full"

    def __post_init__(self):
        if isinstance(self.edge_policy, str):
            self.edge_policy = EdgePolicy(self.edge_policy)
        if self.channels != 3:
            raise ValueError(f"channels must be 3 (RGB output), got {self.channels}")
        if self.tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {self.tile_size}")
        if self.tile_mode not in TILE_MODES:
            raise ValueError(f"tile_mode must be one of {TILE_MODES}, got {self.tile_mode!r}")

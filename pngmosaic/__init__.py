from .catalog import TileCatalog
from .compose import block_index_of, compose_mosaic, row_offset_of
from .config import EdgePolicy, MosaicConfig
from .errors import DecodeError, EmptyCatalog, InvalidChunkSize, MosaicError, UnsupportedColorType
from .matching import match_palette, nearest_key_indices
from .pngmosaic import MosaicMaker, make_mosaic, tile_geometry
from .pooling import BlockGrid, negotiate_chunk_size, pixelate

__all__ = [
    "BlockGrid",
    "DecodeError",
    "EdgePolicy",
    "EmptyCatalog",
    "InvalidChunkSize",
    "MosaicConfig",
    "MosaicError",
    "MosaicMaker",
    "TileCatalog",
    "UnsupportedColorType",
    "block_index_of",
    "compose_mosaic",
    "make_mosaic",
    "match_palette",
    "negotiate_chunk_size",
    "nearest_key_indices",
    "pixelate",
    "row_offset_of",
    "tile_geometry",
]

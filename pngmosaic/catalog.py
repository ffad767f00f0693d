import logging
import os

import numpy as np

from .codec import decode
from .config import TILE_MODES
from .errors import DecodeError, UnsupportedColorType
from .pooling import pixelate

logger = logging.getLogger(__name__)


class TileCatalog():
    """Average color -> tile pixels.

    Keys are tuples of `channels` ints. Iteration, key_array() and
    tile_stack() all follow the lexicographic order of the keys, so nearest
    color ties always resolve the same way. Adding a tile whose key is
    already present replaces the previous tile.
    """

    def __init__(self, channels=3):
        self._channels = channels
        self._tiles = {}
        self._sorted_keys = None

    @property
    def channels(self):
        return self._channels

    @property
    def tile_side(self):
        """Side in pixels of the stored tiles, None while the catalog is empty."""
        if not self._tiles:
            return None
        return next(iter(self._tiles.values())).shape[0]

    def __len__(self):
        return len(self._tiles)

    def __contains__(self, key):
        return tuple(key) in self._tiles

    def __getitem__(self, key):
        return self._tiles[tuple(key)]

    def __iter__(self):
        return iter(self.keys())

    def keys(self):
        if self._sorted_keys is None:
            self._sorted_keys = sorted(self._tiles)
        return list(self._sorted_keys)

    def key_array(self):
        return np.array(self.keys(), dtype=np.int64).reshape(-1, self._channels)

    def tile_stack(self, indices=None):
        """Tiles stacked as (n, side, side, channels), in key order.

        indices selects positions in key order; all tiles when None.
        """
        keys = self.keys()
        if indices is not None:
            keys = [keys[i] for i in indices]
        return np.stack([self._tiles[k] for k in keys])

    def indices_of(self, colors):
        """Positions in key order of each color of an (..., channels) array.

        Raises KeyError for a color that is not a catalog key.
        """
        colors = np.asarray(colors)
        flat = colors.reshape(-1, self._channels)
        position = {k: i for i, k in enumerate(self.keys())}
        unique, inverse = np.unique(flat, axis=0, return_inverse=True)
        lookup = np.array([position[tuple(int(v) for v in c)] for c in unique], dtype=np.int64)
        return lookup[inverse.reshape(-1)].reshape(colors.shape[:-1])

    def add(self, key, tile):
        key = tuple(int(v) for v in key)
        if len(key) != self._channels:
            raise ValueError("Key {} does not have {} channels".format(key, self._channels))
        tile = np.ascontiguousarray(tile[:, :, :self._channels], dtype=np.uint8)
        side = self.tile_side
        if side is not None and tile.shape[:2] != (side, side):
            raise ValueError("Tile of shape {} does not match catalog tiles of side {}".format(tile.shape[:2], side))
        self._tiles[key] = tile
        self._sorted_keys = None

    def add_image(self, image, blocksize, tile_size, mode="full", name=None):
        """Catalog a candidate tile if it is a tile_size square divisible by blocksize.

        The key is the mean of the tile's block averages. Returns the key, or
        None when the image does not qualify.
        """
        if mode not in TILE_MODES:
            raise ValueError("mode must be one of {}, got {!r}".format(TILE_MODES, mode))
        h, w = image.shape[:2]
        if h != w or w != tile_size or tile_size % blocksize != 0:
            logger.debug("Skipping %s: %dx%d is not a %dx%d tile", name or "tile", w, h, tile_size, tile_size)
            return None
        if image.shape[2] < self._channels:
            logger.debug("Skipping %s: %d channels, need %d", name or "tile", image.shape[2], self._channels)
            return None

        grid = pixelate(image, self._channels, blocksize)
        key = grid.mean_color()
        if key in self._tiles:
            logger.debug("%s replaces the tile already cataloged for color %s", name or "tile", key)

        if mode == "pixelated":
            self.add(key, grid.colors)
        else:
            self.add(key, image)
        return key

    @classmethod
    def from_directory(cls, tiles_dir, channels=3, blocksize=52, tile_size=416, mode="full"):
        """Build a catalog from the PNG files of tiles_dir (not recursive).

        Files are visited in name order, so the last name wins among tiles
        sharing an average color. Files that fail to decode or do not fit
        the tile geometry are skipped.
        """
        catalog = cls(channels)
        names = sorted(f for f in os.listdir(tiles_dir) if os.path.isfile(os.path.join(tiles_dir, f)))
        skipped = 0

        for f in names:
            path = os.path.join(tiles_dir, f)
            try:
                npim = decode(path)
            except (DecodeError, UnsupportedColorType) as e:
                logger.debug("Skipping %s: %s", f, e)
                skipped += 1
                continue
            if catalog.add_image(npim, blocksize, tile_size, mode=mode, name=f) is None:
                skipped += 1

        logger.info("Cataloged %d tile colors from %d files in %s (%d skipped)",
                    len(catalog), len(names), tiles_dir, skipped)
        return catalog

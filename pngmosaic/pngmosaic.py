import logging
import os

from .catalog import TileCatalog
from .codec import decode, encode
from .compose import compose_mosaic
from .config import EdgePolicy, MosaicConfig
from .errors import InvalidChunkSize
from .matching import match_palette
from .pooling import negotiate_chunk_size, pixelate

logger = logging.getLogger(__name__)

PHASES = 5


def tile_geometry(config):
    """Return (tile block size, blocks per tile side) for config's tile size."""
    tile_chunk = negotiate_chunk_size(config.tile_chunk_size, config.tile_size, config.tile_size)
    return tile_chunk, config.tile_size // tile_chunk


def target_chunk_size(config, width, height):
    """Block size used to pixelate a width x height target."""
    if config.edge_policy == EdgePolicy.PAD_PARTIAL:
        if config.chunk_size <= 0 or config.chunk_size > width or config.chunk_size > height:
            raise InvalidChunkSize("Chunk size {} does not fit a {}x{} image".format(config.chunk_size, width, height))
        return config.chunk_size
    return negotiate_chunk_size(config.chunk_size, width, height)


def pixelate_target(image, config):
    h, w = image.shape[:2]
    chunk = target_chunk_size(config, w, h)
    grid = pixelate(image, config.channels, chunk, edge_policy=config.edge_policy)
    logger.info("Computed average RGB values of the %dx%d input image in %dx%d = %d boxes of %dpx",
                w, h, grid.blocks_wide, grid.blocks_high, grid.blocks_wide * grid.blocks_high, chunk)
    return grid


def make_mosaic(image, catalog, config=None):
    """Build the mosaic of image from an already built catalog.

    Returns the (height, width, channels) uint8 mosaic array.
    """
    config = config or MosaicConfig()
    grid = pixelate_target(image, config)
    matched = match_palette(grid, catalog, method=config.method)
    return compose_mosaic(matched, catalog)


class MosaicMaker():

    def __init__(self, input_image, tiles_dir, target_image=None, config=None):
        """input_image: path to the PNG to be "mosaicified"
        tiles_dir: directory where the tiles are stored
        target_image: name of the mosaic image (default: generated from the parameters, see build_mosaic)
        config: MosaicConfig, default values if not given
        """

        self.config = config or MosaicConfig()
        self._tiles_dir = tiles_dir
        self._input_image_filename = input_image
        self._input_image = decode(input_image)
        self._target_image = target_image
        logger.info("Input image size: %s", self._input_image.shape)

        self.pooled_image = None
        self.catalog = None
        self.mosaic_image = None

    def compute_image_stats(self):
        """Average the input image over its blocks"""
        self.pooled_image = pixelate_target(self._input_image, self.config)
        return self.pooled_image

    def get_tiles_stats(self):
        """Average color of every usable tile in the tiles directory"""
        tile_chunk, blocks_per_side = tile_geometry(self.config)
        logger.info("Tiles must be %dx%d px, averaged in %dx%d blocks of %dpx",
                    self.config.tile_size, self.config.tile_size, blocks_per_side, blocks_per_side, tile_chunk)
        self.catalog = TileCatalog.from_directory(self._tiles_dir,
                                                  channels=self.config.channels,
                                                  blocksize=tile_chunk,
                                                  tile_size=self.config.tile_size,
                                                  mode=self.config.tile_mode)
        return self.catalog

    def _default_filename(self):
        return "mosaic-{}x{}-TS{}-{}-{}-{}".format(
            self.pooled_image.blocks_wide,
            self.pooled_image.blocks_high,
            self.catalog.tile_side,
            self.config.method,
            self.config.tile_mode,
            os.path.basename(self._input_image_filename))

    def build_mosaic(self, filename=None):
        """Run the five phases and save the mosaic as a PNG.

        The file is written only once the whole mosaic has been composed.
        Returns the mosaic array.
        """
        self.compute_image_stats()
        logger.info("Finished phase 1 out of %d", PHASES)

        self.get_tiles_stats()
        logger.info("Finished phase 2 out of %d", PHASES)

        matched = match_palette(self.pooled_image, self.catalog, method=self.config.method)
        logger.info("Finished phase 3 out of %d", PHASES)

        self.mosaic_image = compose_mosaic(matched, self.catalog)
        logger.info("Finished phase 4 out of %d", PHASES)

        filename = filename or self._target_image or self._default_filename()
        encode(filename, self.mosaic_image)
        logger.info("Finished phase 5 out of %d", PHASES)
        logger.info("Mosaic saved in %s", filename)

        return self.mosaic_image

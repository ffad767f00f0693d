import logging
from dataclasses import dataclass

import numba as nb
import numpy as np

from .config import EdgePolicy
from .errors import InvalidChunkSize

logger = logging.getLogger(__name__)


def negotiate_chunk_size(chunk_size, width, height):
    """Return the smallest block size >= chunk_size dividing both width and height.

    This is a forward search from the guess, not a gcd: 5 over a 101x101
    image gives 101 because 101 is prime.
    """
    c = chunk_size
    while True:
        if c <= 0 or c > width or c > height:
            raise InvalidChunkSize(
                "Pixels per chunk cannot be larger than image width/height "
                "(guess {} for a {}x{} image)".format(chunk_size, width, height))
        if width % c == 0 and height % c == 0:
            return c
        c += 1


@nb.njit(parallel=True)
def _block_sums(img, blocksize, nbx, nby, channels):
    """Sum the first `channels` channels of img over blocksize x blocksize boxes.

    Trailing boxes are clipped to the image. Returns the int64 sums,
    shape (nby, nbx, channels), and the number of pixels in each box.
    """
    h = img.shape[0]
    w = img.shape[1]
    sums = np.zeros((nby, nbx, channels), dtype=np.int64)
    counts = np.zeros((nby, nbx), dtype=np.int64)

    for by in nb.prange(nby):
        y0 = np.int64(by) * blocksize
        y1 = min(y0 + blocksize, h)
        for bx in range(nbx):
            x0 = bx * blocksize
            x1 = min(x0 + blocksize, w)
            for y in range(y0, y1):
                for x in range(x0, x1):
                    for k in range(channels):
                        sums[by, bx, k] += img[y, x, k]
            counts[by, bx] = (y1 - y0) * (x1 - x0)

    return sums, counts


@dataclass
class BlockGrid:
    """Per-block average colors of an image.

    colors has shape (blocks_high, blocks_wide, channels) and dtype uint8.
    """

    colors: np.ndarray
    blocksize: int = 1

    @property
    def blocks_wide(self):
        return self.colors.shape[1]

    @property
    def blocks_high(self):
        return self.colors.shape[0]

    @property
    def channels(self):
        return self.colors.shape[2]

    def color_at(self, bx, by):
        return tuple(int(v) for v in self.colors[by, bx])

    def mean_color(self):
        """Truncated mean of all the blocks, as a color key."""
        flat = self.colors.reshape(-1, self.channels)
        return tuple(int(v) for v in flat.sum(axis=0, dtype=np.int64) // flat.shape[0])

    def with_colors(self, colors):
        return BlockGrid(colors=colors, blocksize=self.blocksize)


def pixelate(image, channels, blocksize, edge_policy=EdgePolicy.EXACT):
    """Average image over square blocks of side blocksize.

    image is a (height, width, n) uint8 array with n >= channels. Channels
    past `channels` (alpha) are dropped. Averages are truncated, so a block
    of 0s and 255s gives 127.
    """
    if image.ndim != 3:
        raise ValueError("Expected a (height, width, channels) array, got shape {}".format(image.shape))
    h, w, src_channels = image.shape
    if channels < 1 or channels > src_channels:
        raise ValueError("Cannot keep {} channels of a {}-channel image".format(channels, src_channels))
    if blocksize <= 0:
        raise InvalidChunkSize("Block size must be positive, got {}".format(blocksize))

    if edge_policy == EdgePolicy.EXACT:
        if w % blocksize != 0 or h % blocksize != 0:
            raise InvalidChunkSize(
                "Block size {} does not divide a {}x{} image".format(blocksize, w, h))
        nbx, nby = w // blocksize, h // blocksize
    else:
        nbx, nby = -(-w // blocksize), -(-h // blocksize)

    logger.debug("Averaging %dx%d image in %dx%d blocks of %dpx", w, h, nbx, nby, blocksize)

    sums, counts = _block_sums(np.ascontiguousarray(image), blocksize, nbx, nby, channels)
    colors = (sums // counts[:, :, np.newaxis]).astype(np.uint8)

    return BlockGrid(colors=colors, blocksize=blocksize)

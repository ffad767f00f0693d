"""PNG decoding and encoding between files and (height, width, channels) arrays."""

import logging
import struct

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, UnsupportedColorType

logger = logging.getLogger(__name__)

IMAGE_FORMATS = ("PNG",)
SUPPORTED_MODES = {"RGB": 3, "RGBA": 4}


def decode(path):
    """Read an 8-bit RGB or RGBA PNG into a uint8 array.

    A missing or unreadable file raises the underlying OSError. Content that
    Pillow cannot decode, or that is over its decompression bomb limit,
    raises DecodeError. Any color type other than RGB/RGBA raises
    UnsupportedColorType.
    """
    try:
        image = Image.open(path, formats=IMAGE_FORMATS)
    except (FileNotFoundError, IsADirectoryError, PermissionError):
        raise
    except UnidentifiedImageError as e:
        raise DecodeError(path, e) from e
    except (OSError, EOFError, SyntaxError, ValueError, struct.error, Image.DecompressionBombError) as e:
        # broken headers surface as plain OSError or parser errors
        raise DecodeError(path, e) from e

    with image:
        if image.mode not in SUPPORTED_MODES:
            raise UnsupportedColorType(path, image.mode)
        try:
            image.load()
        except (OSError, EOFError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise DecodeError(path, e) from e
        npim = np.array(image)

    logger.debug("Decoded %s: %dx%d %s", path, npim.shape[1], npim.shape[0], image.mode)
    return npim


def encode(path, npim):
    """Write a (height, width, 3) uint8 array as an 8-bit RGB PNG."""
    npim = np.ascontiguousarray(npim, dtype=np.uint8)
    if npim.ndim != 3 or npim.shape[2] != 3:
        raise ValueError("Expected a (height, width, 3) array, got shape {}".format(npim.shape))
    PILim = Image.fromarray(npim)
    PILim.save(path, format="PNG")
    logger.debug("Encoded %dx%d %s image to %s", PILim.width, PILim.height, PILim.mode, path)

"""Exceptions raised by the mosaic pipeline.

Only the command line driver turns these into an exit status; every other
layer lets them propagate.
"""


class MosaicError(Exception):
    """Base class for all pipeline failures."""


class InvalidChunkSize(MosaicError, ValueError):
    """No block size partitions the image within its bounds."""


class EmptyCatalog(MosaicError):
    """The tile catalog holds no color to match against."""


class DecodeError(MosaicError):

    def __init__(self, path, reason=None):
        self.path = path
        self.reason = reason
        msg = "Failed to decode image {}".format(path)
        if reason is not None:
            msg += ": {}".format(reason)
        super().__init__(msg)


class UnsupportedColorType(MosaicError):

    def __init__(self, path, mode):
        self.path = path
        self.mode = mode
        super().__init__("Unrecognized color type {!r} in {} (expected RGB or RGBA)".format(mode, path))

import logging

import numba as nb
import numpy as np
from scipy.spatial import cKDTree

from .config import MATCH_METHODS
from .errors import EmptyCatalog

logger = logging.getLogger(__name__)


@nb.njit
def _squared_distance(colors, i, keys, j):
    d = 0
    for c in range(colors.shape[1]):
        diff = colors[i, c] - keys[j, c]
        d += diff * diff
    return d


@nb.njit(parallel=True)
def _get_best_matches(colors, keys):
    """Index of the nearest key for each color; the first key wins ties."""
    n = colors.shape[0]
    out = np.empty(n, dtype=np.int64)

    for i in nb.prange(n):
        best = 0
        best_dist = _squared_distance(colors, i, keys, 0)
        for j in range(1, keys.shape[0]):
            d = _squared_distance(colors, i, keys, j)
            if d < best_dist:
                best = j
                best_dist = d
        out[i] = best

    return out


def _get_kdtree_matches(colors, keys):
    tree = cKDTree(keys)
    if len(keys) == 1:
        return np.zeros(len(colors), dtype=np.int64)

    dist, idx = tree.query(colors, k=2)
    out = idx[:, 0].astype(np.int64)

    # Squared distances are integers: only exact ties fall within the tolerance
    tied = np.nonzero(dist[:, 1] <= dist[:, 0] * (1 + 1e-9) + 1e-9)[0]
    if len(tied) == 0:
        return out

    # Gather everything at the nearest distance and keep the first key, as the brute-force scan does
    radii = dist[tied, 0] * (1 + 1e-9) + 1e-9
    for i, candidates in zip(tied, tree.query_ball_point(colors[tied], r=radii)):
        candidates = np.sort(np.asarray(candidates, dtype=np.int64))
        d2 = ((keys[candidates] - colors[i]) ** 2).sum(axis=1)
        out[i] = candidates[np.argmin(d2)]

    return out


def nearest_key_indices(colors, keys, method="brute-force"):
    """For each row of colors (n, C), the index of the nearest row of keys (k, C).

    Distance is euclidean. Ties resolve to the lowest key index.
    """
    keys = np.asarray(keys, dtype=np.int64)
    if keys.size == 0:
        raise EmptyCatalog("No tile colors to match against")

    if method not in MATCH_METHODS:
        logger.warning("Method to minimize RGB distance must be either %s or %s, not %r. "
                       "Set it to default (brute-force)", *MATCH_METHODS, method)
        method = "brute-force"

    colors = np.asarray(colors, dtype=np.int64).reshape(-1, keys.shape[1])
    # Blocks often share a color; search each distinct color once
    unique, inverse = np.unique(colors, axis=0, return_inverse=True)

    if method == "kdtree":
        best = _get_kdtree_matches(unique, keys)
    else:
        best = _get_best_matches(unique, keys)

    return best[inverse.reshape(-1)]


def match_palette(grid, catalog, method="brute-force"):
    """Replace every block color of grid with the nearest catalog color."""
    if len(catalog) == 0:
        raise EmptyCatalog("No tile in the catalog matched the tile geometry")
    if grid.channels != catalog.channels:
        raise ValueError("Grid has {} channels but catalog keys have {}".format(grid.channels, catalog.channels))

    keys = catalog.key_array()
    logger.info("Matching %d blocks against %d tile colors using %s method",
                grid.blocks_wide * grid.blocks_high, len(keys), method)

    best = nearest_key_indices(grid.colors.reshape(-1, grid.channels), keys, method)
    matched = keys[best].astype(np.uint8).reshape(grid.colors.shape)

    return grid.with_colors(matched)

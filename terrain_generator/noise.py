# terrain_generator/noise.py

"""
================================================================================
GRADIENT NOISE
================================================================================
This module provides deterministic 2D and 3D gradient (Perlin) noise driven by
a seed-shuffled permutation table.

Data Contract:
---------------
- Inputs:
    - seed: A non-negative integer controlling the permutation table.
    - x, y[, z]: Scalar floats or NumPy arrays of coordinates.
- Outputs:
    - Noise values in the range [0, 1].
- Side Effects: None. The permutation table is read-only after construction.
- Invariants:
    - The same seed and coordinates always produce the same value.
    - The field repeats every 256 units along each axis.
================================================================================
"""

import logging
import math

import numpy as np
from numba import njit

from . import config as DEFAULTS
from .errors import InvalidParameterError

_MASK = DEFAULTS.PERMUTATION_SIZE - 1


@njit
def _fade(t):
    "6t^5 - 15t^4 + 10t^3"
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


@njit
def _lerp(t, a, b):
    "Linear interpolation."
    return a + t * (b - a)


@njit
def _grad(hash_value, x, y):
    """Dot product with one of the four diagonal gradients picked by the hash."""
    h = hash_value & 3
    u = x if h < 2 else y
    v = y if h < 2 else x
    return (u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v)


@njit
def _grad3(hash_value, x, y, z):
    """Dot product with one of the twelve cube-edge gradients (16 slots)."""
    h = hash_value & 15
    u = x if h < 8 else y
    if h < 4:
        v = y
    elif h == 12 or h == 14:
        v = x
    else:
        v = z
    return (u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v)


@njit
def _remap(r):
    """Shifts a raw [-1, 1] noise value into [0, 1]."""
    value = (r + 1.0) / 2.0
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


@njit
def perlin_2d(p, x, y):
    """
    Evaluates 2D gradient noise at a single point.
    This function is JIT-compiled with Numba and is the building block of
    every fractal variant.
    """
    xi = int(math.floor(x))
    yi = int(math.floor(y))
    X = xi & _MASK
    Y = yi & _MASK

    x = x - xi
    y = y - yi

    u = _fade(x)
    v = _fade(y)

    aa = p[p[X] + Y]
    ab = p[p[X] + Y + 1]
    ba = p[p[X + 1] + Y]
    bb = p[p[X + 1] + Y + 1]

    res = _lerp(v,
                _lerp(u, _grad(aa, x, y), _grad(ba, x - 1.0, y)),
                _lerp(u, _grad(ab, x, y - 1.0), _grad(bb, x - 1.0, y - 1.0)))
    return _remap(res)


@njit
def perlin_3d(p, x, y, z):
    """Evaluates 3D gradient noise at a single point."""
    xi = int(math.floor(x))
    yi = int(math.floor(y))
    zi = int(math.floor(z))
    X = xi & _MASK
    Y = yi & _MASK
    Z = zi & _MASK

    x = x - xi
    y = y - yi
    z = z - zi

    u = _fade(x)
    v = _fade(y)
    w = _fade(z)

    a = p[X] + Y
    aa = p[a] + Z
    ab = p[a + 1] + Z
    b = p[X + 1] + Y
    ba = p[b] + Z
    bb = p[b + 1] + Z

    res = _lerp(w,
                _lerp(v,
                      _lerp(u, _grad3(p[aa], x, y, z), _grad3(p[ba], x - 1.0, y, z)),
                      _lerp(u, _grad3(p[ab], x, y - 1.0, z), _grad3(p[bb], x - 1.0, y - 1.0, z))),
                _lerp(v,
                      _lerp(u, _grad3(p[aa + 1], x, y, z - 1.0), _grad3(p[ba + 1], x - 1.0, y, z - 1.0)),
                      _lerp(u, _grad3(p[ab + 1], x, y - 1.0, z - 1.0), _grad3(p[bb + 1], x - 1.0, y - 1.0, z - 1.0))))
    return _remap(res)


@njit
def _perlin_2d_array(p, xs, ys):
    out = np.empty(xs.shape[0])
    for i in range(xs.shape[0]):
        out[i] = perlin_2d(p, xs[i], ys[i])
    return out


@njit
def _perlin_3d_array(p, xs, ys, zs):
    out = np.empty(xs.shape[0])
    for i in range(xs.shape[0]):
        out[i] = perlin_3d(p, xs[i], ys[i], zs[i])
    return out


def flatten_coordinates(*coords):
    """
    Broadcasts coordinate inputs against each other and returns their common
    shape along with contiguous 1D float64 copies suitable for the kernels.
    """
    arrays = np.broadcast_arrays(*[np.asarray(c, dtype=np.float64) for c in coords])
    shape = arrays[0].shape
    return shape, [np.ascontiguousarray(a).ravel() for a in arrays]


def build_permutation_table(seed: int) -> np.ndarray:
    """
    Builds the 512-entry permutation table for a seed.

    The values 0..255 are shuffled with NumPy's PCG64-driven Fisher-Yates
    shuffle and then duplicated so lookups of the form p[p[X] + Y + 1] never
    need to wrap.
    """
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)) or seed < 0:
        raise InvalidParameterError("seed", seed, "must be a non-negative integer")

    p = np.arange(DEFAULTS.PERMUTATION_SIZE, dtype=np.int64)
    rng = np.random.default_rng(int(seed))
    rng.shuffle(p)
    table = np.stack([p, p]).flatten()
    table.flags.writeable = False
    return table


def _validate_permutation_table(table) -> np.ndarray:
    table = np.asarray(table, dtype=np.int64)
    size = DEFAULTS.PERMUTATION_SIZE
    if table.shape == (size,):
        table = np.concatenate([table, table])
    if table.shape != (2 * size,):
        raise InvalidParameterError("permutation_table", table.shape, f"expected {size} or {2 * size} entries")
    if not np.array_equal(np.sort(table[:size]), np.arange(size)):
        raise InvalidParameterError("permutation_table", "contents", f"first {size} entries must permute 0..{size - 1}")
    if not np.array_equal(table[:size], table[size:]):
        raise InvalidParameterError("permutation_table", "contents", "second half must duplicate the first")
    table = table.copy()
    table.flags.writeable = False
    return table


class GradientNoise:
    """
    A seedable gradient noise field. Each instance owns its own immutable
    permutation table, so several independent fields (e.g. terrain and
    decoration) can coexist and be sampled from multiple threads.
    """

    def __init__(self, seed: int = DEFAULTS.DEFAULT_SEED, permutation_table: np.ndarray = None,
                 logger: logging.Logger = None):
        """
        Args:
            seed (int): Seed for the permutation shuffle.
            permutation_table (np.ndarray, optional): A pre-computed table of
                256 or 512 entries. If None, one is generated from the seed.
            logger (logging.Logger, optional): Logger for diagnostics.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.seed = seed
        if permutation_table is not None:
            self._p = _validate_permutation_table(permutation_table)
            self.logger.debug("GradientNoise initialized with injected permutation table.")
        else:
            self._p = build_permutation_table(seed)
            self.logger.debug(f"GradientNoise permutation table generated from seed {seed}.")

    @property
    def permutation_table(self) -> np.ndarray:
        """The read-only 512-entry permutation table."""
        return self._p

    def sample2(self, x: float, y: float) -> float:
        """2D noise in [0, 1] at a single point."""
        return perlin_2d(self._p, float(x), float(y))

    def sample3(self, x: float, y: float, z: float) -> float:
        """3D noise in [0, 1] at a single point."""
        return perlin_3d(self._p, float(x), float(y), float(z))

    def sample2_array(self, x, y) -> np.ndarray:
        """2D noise evaluated element-wise over broadcastable coordinate arrays."""
        shape, (xs, ys) = flatten_coordinates(x, y)
        return _perlin_2d_array(self._p, xs, ys).reshape(shape)

    def sample3_array(self, x, y, z) -> np.ndarray:
        """3D noise evaluated element-wise over broadcastable coordinate arrays."""
        shape, (xs, ys, zs) = flatten_coordinates(x, y, z)
        return _perlin_3d_array(self._p, xs, ys, zs).reshape(shape)

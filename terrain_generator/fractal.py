# terrain_generator/fractal.py

"""
================================================================================
FRACTAL NOISE COMPOSITION
================================================================================
This module combines octaves of gradient noise into the classic, ridged,
billow and cellular (Voronoi) signals used to shape terrain.

Data Contract:
---------------
- Inputs:
    - p: The permutation table of a GradientNoise instance.
    - x, y[, z]: Scalar floats or NumPy arrays of coordinates.
    - octaves, persistence, lacunarity: Standard fractal parameters.
- Outputs:
    - classic/ridged/billow: values in [0, 1].
    - voronoi: an unbounded distance to the nearest feature point.
- Side Effects: None.
- Invariants: For every variant, frequency starts at 1 and is multiplied by
  lacunarity per octave, amplitude starts at 1 and is multiplied by
  persistence per octave, and the sum is divided by the total amplitude.
================================================================================
"""

import math

import numpy as np
from numba import njit

from . import config as DEFAULTS
from .errors import InvalidParameterError
from .noise import GradientNoise, flatten_coordinates, perlin_2d, perlin_3d

_Y_MULTIPLIER = DEFAULTS.VORONOI_Y_MULTIPLIER
_SHIFT = DEFAULTS.VORONOI_SHIFT
_PRIME_A = DEFAULTS.VORONOI_PRIME_A
_PRIME_B = DEFAULTS.VORONOI_PRIME_B
_PRIME_C = DEFAULTS.VORONOI_PRIME_C
_HASH_MASK = DEFAULTS.VORONOI_HASH_MASK
_WORD_MASK = 0xffffffff


@njit
def classic_2d(p, x, y, octaves, persistence, lacunarity):
    """Fractal sum of 2D noise normalized back into [0, 1]."""
    total = 0.0
    frequency = 1.0
    amplitude = 1.0
    max_value = 0.0
    for _ in range(octaves):
        total += perlin_2d(p, x * frequency, y * frequency) * amplitude
        max_value += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    return total / max_value


@njit
def ridged_2d(p, x, y, octaves, persistence, lacunarity):
    """
    Ridged fractal. Each octave folds the noise around its midpoint, sharpens
    the crest and is weighted by the previous octave's signal, so detail
    concentrates on the ridges.
    """
    total = 0.0
    frequency = 1.0
    amplitude = 1.0
    max_value = 0.0
    weight = 1.0
    for _ in range(octaves):
        signal = 2.0 * abs(perlin_2d(p, x * frequency, y * frequency) - 0.5)
        signal = (1.0 - signal) * (1.0 - signal)
        signal *= weight
        weight = min(max(signal * 2.0, 0.0), 1.0)
        total += signal * amplitude
        max_value += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    return total / max_value


@njit
def billow_2d(p, x, y, octaves, persistence, lacunarity):
    """Billow fractal: folded noise without sharpening gives rounded lobes."""
    total = 0.0
    frequency = 1.0
    amplitude = 1.0
    max_value = 0.0
    for _ in range(octaves):
        signal = 2.0 * abs(perlin_2d(p, x * frequency, y * frequency) - 0.5)
        total += signal * amplitude
        max_value += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    return total / max_value


@njit
def classic_3d(p, x, y, z, octaves, persistence, lacunarity):
    """Fractal sum of 3D noise normalized back into [0, 1]."""
    total = 0.0
    frequency = 1.0
    amplitude = 1.0
    max_value = 0.0
    for _ in range(octaves):
        total += perlin_3d(p, x * frequency, y * frequency, z * frequency) * amplitude
        max_value += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    return total / max_value


@njit
def voronoi_hash(x, y):
    """
    Integer hash of a cell coordinate, in [0, 2^31).
    Evaluated with 32-bit wrap-around; the masks only drop bits that the
    final 31-bit mask would discard anyway.
    """
    h = (x + y * _Y_MULTIPLIER) & _WORD_MASK
    h = ((h << _SHIFT) ^ h) & _WORD_MASK
    h = (h * ((h * h * _PRIME_A + _PRIME_B) & _WORD_MASK) + _PRIME_C) & _WORD_MASK
    return h & _HASH_MASK


@njit
def voronoi_2d(x, y, frequency):
    """Distance from (x, y) to the nearest feature point in the 3x3 cell neighbourhood."""
    x = x * frequency
    y = y * frequency
    cell_x = int(math.floor(x))
    cell_y = int(math.floor(y))

    min_dist = np.inf
    for dy in range(-1, 2):
        for dx in range(-1, 2):
            nx = cell_x + dx
            ny = cell_y + dy
            h = voronoi_hash(nx, ny)
            # One feature point per cell, offset by the low and high halves of the hash.
            point_x = nx + (h & 0xffff) / 65536.0
            point_y = ny + ((h >> 16) & 0xffff) / 65536.0
            dist = math.sqrt((x - point_x) ** 2 + (y - point_y) ** 2)
            if dist < min_dist:
                min_dist = dist
    return min_dist


@njit
def _fractal_2d_array(kind, p, xs, ys, octaves, persistence, lacunarity):
    out = np.empty(xs.shape[0])
    for i in range(xs.shape[0]):
        if kind == 0:
            out[i] = classic_2d(p, xs[i], ys[i], octaves, persistence, lacunarity)
        elif kind == 1:
            out[i] = ridged_2d(p, xs[i], ys[i], octaves, persistence, lacunarity)
        else:
            out[i] = billow_2d(p, xs[i], ys[i], octaves, persistence, lacunarity)
    return out


@njit
def _classic_3d_array(p, xs, ys, zs, octaves, persistence, lacunarity):
    out = np.empty(xs.shape[0])
    for i in range(xs.shape[0]):
        out[i] = classic_3d(p, xs[i], ys[i], zs[i], octaves, persistence, lacunarity)
    return out


@njit
def _voronoi_2d_array(xs, ys, frequency):
    out = np.empty(xs.shape[0])
    for i in range(xs.shape[0]):
        out[i] = voronoi_2d(xs[i], ys[i], frequency)
    return out


_CLASSIC = 0
_RIDGED = 1
_BILLOW = 2


def _check_octaves(octaves) -> int:
    if isinstance(octaves, bool) or not isinstance(octaves, (int, np.integer)) or octaves < 1:
        raise InvalidParameterError("octaves", octaves, "must be an integer >= 1")
    return int(octaves)


class FractalCompositor:
    """
    Combines octaves of a GradientNoise field into fractal signals.

    Every 2D/3D variant takes (octaves, persistence) and an optional
    lacunarity. Leaving lacunarity out gives the classic fixed doubling of
    frequency per octave.
    """

    def __init__(self, noise: GradientNoise):
        self.noise = noise

    @property
    def _p(self) -> np.ndarray:
        return self.noise.permutation_table

    def classic2(self, x: float, y: float, octaves: int, persistence: float,
                 lacunarity: float = DEFAULTS.CLASSIC_LACUNARITY) -> float:
        return classic_2d(self._p, float(x), float(y), _check_octaves(octaves), float(persistence), float(lacunarity))

    def ridged2(self, x: float, y: float, octaves: int, persistence: float,
                lacunarity: float = DEFAULTS.CLASSIC_LACUNARITY) -> float:
        return ridged_2d(self._p, float(x), float(y), _check_octaves(octaves), float(persistence), float(lacunarity))

    def billow2(self, x: float, y: float, octaves: int, persistence: float,
                lacunarity: float = DEFAULTS.CLASSIC_LACUNARITY) -> float:
        return billow_2d(self._p, float(x), float(y), _check_octaves(octaves), float(persistence), float(lacunarity))

    def classic3(self, x: float, y: float, z: float, octaves: int, persistence: float,
                 lacunarity: float = DEFAULTS.CLASSIC_LACUNARITY) -> float:
        return classic_3d(self._p, float(x), float(y), float(z), _check_octaves(octaves),
                          float(persistence), float(lacunarity))

    def voronoi2(self, x: float, y: float, frequency: float = 1.0) -> float:
        """
        Cellular noise. Returns the raw distance to the nearest feature point;
        it is not normalized, so callers scale it to their own range.
        """
        return voronoi_2d(float(x), float(y), float(frequency))

    # --- Array variants ---

    def _fractal_array(self, kind, x, y, octaves, persistence, lacunarity) -> np.ndarray:
        shape, (xs, ys) = flatten_coordinates(x, y)
        out = _fractal_2d_array(kind, self._p, xs, ys, _check_octaves(octaves), float(persistence), float(lacunarity))
        return out.reshape(shape)

    def classic2_array(self, x, y, octaves, persistence, lacunarity=DEFAULTS.CLASSIC_LACUNARITY) -> np.ndarray:
        return self._fractal_array(_CLASSIC, x, y, octaves, persistence, lacunarity)

    def ridged2_array(self, x, y, octaves, persistence, lacunarity=DEFAULTS.CLASSIC_LACUNARITY) -> np.ndarray:
        return self._fractal_array(_RIDGED, x, y, octaves, persistence, lacunarity)

    def billow2_array(self, x, y, octaves, persistence, lacunarity=DEFAULTS.CLASSIC_LACUNARITY) -> np.ndarray:
        return self._fractal_array(_BILLOW, x, y, octaves, persistence, lacunarity)

    def classic3_array(self, x, y, z, octaves, persistence, lacunarity=DEFAULTS.CLASSIC_LACUNARITY) -> np.ndarray:
        shape, (xs, ys, zs) = flatten_coordinates(x, y, z)
        out = _classic_3d_array(self._p, xs, ys, zs, _check_octaves(octaves), float(persistence), float(lacunarity))
        return out.reshape(shape)

    def voronoi2_array(self, x, y, frequency: float = 1.0) -> np.ndarray:
        shape, (xs, ys) = flatten_coordinates(x, y)
        return _voronoi_2d_array(xs, ys, float(frequency)).reshape(shape)

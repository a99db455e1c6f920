# terrain_generator/__init__.py

# This file makes the 'terrain_generator' directory a Python package.
# It also defines the public API of the package.

import logging

from . import config as DEFAULTS
from .errors import InvalidParameterError, TerrainError
from .fractal import FractalCompositor, voronoi_hash
from .generator import HeightfieldSynthesizer, triangulate
from .history import ParameterHistory
from .mesh import Mesh, VERTEX_DTYPE
from .noise import GradientNoise, build_permutation_table
from .normals import NormalEstimator
from .parameters import TerrainParameters, parse_assignment
from .session import SessionState, TerrainSession


def synthesize_terrain(params: TerrainParameters, seed: int = DEFAULTS.DEFAULT_SEED,
                       logger: logging.Logger = None) -> Mesh:
    """One-shot synthesis with a fresh synthesizer. Raises InvalidParameterError."""
    return HeightfieldSynthesizer({'seed': seed}, logger).synthesize(params)


__all__ = [
    "FractalCompositor",
    "GradientNoise",
    "HeightfieldSynthesizer",
    "InvalidParameterError",
    "Mesh",
    "NormalEstimator",
    "ParameterHistory",
    "SessionState",
    "TerrainError",
    "TerrainParameters",
    "TerrainSession",
    "VERTEX_DTYPE",
    "build_permutation_table",
    "parse_assignment",
    "synthesize_terrain",
    "triangulate",
    "voronoi_hash",
]

# terrain_generator/generator.py

"""
================================================================================
HEIGHTFIELD SYNTHESIZER
================================================================================
This module contains the HeightfieldSynthesizer class, responsible for
sampling layered fractal noise over a regular grid and turning the resulting
heightfield into an indexed triangle mesh with per-vertex normals.

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict): Parameters which can override the internal defaults.
      Expected keys include 'seed', 'max_octaves' and
      'degenerate_area_epsilon'.
    - logger: A configured Python logging object for runtime messages.
- Inputs (per call):
    - params (TerrainParameters): The layering parameters to synthesize.
- Outputs:
    - A Mesh with width*height vertices and 6*(width-1)*(height-1) indices.
- Side Effects: Logs messages using the provided logger.
- Invariants: Given the same seed and parameters, the output is
  deterministic, including when rows are computed in parallel.
================================================================================
"""

import logging
import time

import numpy as np
from numba import njit, prange

from . import config as DEFAULTS
from .fractal import FractalCompositor, classic_2d
from .mesh import Mesh
from .noise import GradientNoise
from .normals import NormalEstimator
from .parameters import TerrainParameters

_CLASSIC_LACUNARITY = DEFAULTS.CLASSIC_LACUNARITY
_HALF_EXTENT = DEFAULTS.GRID_HALF_EXTENT


@njit(parallel=True)
def _layered_heightfield(p, width, height, scale, layer_octaves, detail_octaves,
                         persistence, lacunarity, base_amplitude, base_frequency):
    """
    Samples the layered height for every grid vertex. Rows are independent,
    so they are distributed over threads with prange.
    """
    heights = np.empty((height, width))
    for z in prange(height):
        z_pos = z * scale - _HALF_EXTENT
        for x in range(width):
            x_pos = x * scale - _HALF_EXTENT
            value = 0.0
            amplitude = base_amplitude
            frequency = base_frequency
            for _ in range(layer_octaves):
                value += amplitude * classic_2d(p, x_pos * frequency, z_pos * frequency,
                                                detail_octaves, persistence, _CLASSIC_LACUNARITY)
                amplitude *= persistence
                frequency *= lacunarity
            heights[z, x] = value
    return heights


def grid_scale(width: int, height: int) -> float:
    """Uniform spacing that maps the longest grid axis onto [-0.5, 0.5]."""
    return (2.0 * _HALF_EXTENT) / (max(width, height) - 1)


def triangulate(width: int, height: int) -> np.ndarray:
    """
    Builds the index buffer for a width x height vertex grid: two triangles
    per cell, (topLeft, bottomLeft, topRight) and (topRight, bottomLeft,
    bottomRight), cells in row-major order.
    """
    rows, cols = np.meshgrid(np.arange(height - 1, dtype=np.int64),
                             np.arange(width - 1, dtype=np.int64), indexing="ij")
    top_left = (rows * width + cols).ravel()
    top_right = top_left + 1
    bottom_left = top_left + width
    bottom_right = bottom_left + 1
    indices = np.column_stack([top_left, bottom_left, top_right,
                               top_right, bottom_left, bottom_right])
    return indices.ravel().astype(np.uint32)


class HeightfieldSynthesizer:
    """
    Generates terrain meshes from TerrainParameters.
    This class is backend-only and does not handle any visualization.
    """
    def __init__(self, config: dict = None, logger: logging.Logger = None, permutation_table: np.ndarray = None):
        """
        Initializes the synthesizer.

        Args:
            config (dict, optional): User-defined settings to override defaults.
            logger (logging.Logger, optional): The logger instance for all output.
            permutation_table (np.ndarray, optional): A pre-computed noise
                permutation table. If None, one will be generated from the seed.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.user_config = config or {}

        # --- Consolidate Configuration ---
        self.settings = {
            'seed': self.user_config.get('seed', DEFAULTS.DEFAULT_SEED),
            'max_octaves': self.user_config.get('max_octaves', DEFAULTS.MAX_OCTAVES),
            'degenerate_area_epsilon': self.user_config.get('degenerate_area_epsilon', DEFAULTS.DEGENERATE_AREA_EPSILON),
        }
        self.seed = self.settings['seed']

        # --- Initialize Noise ---
        self.noise = GradientNoise(self.seed, permutation_table=permutation_table, logger=self.logger)
        self.compositor = FractalCompositor(self.noise)
        self.normal_estimator = NormalEstimator(self.logger, epsilon=self.settings['degenerate_area_epsilon'])

        # --- Expose the permutation table for baking ---
        self.permutation_table = self.noise.permutation_table

        self.logger.info(f"HeightfieldSynthesizer initialized with seed: {self.seed}")

    def validate(self, params: TerrainParameters) -> TerrainParameters:
        return params.validate(self.settings['max_octaves'])

    def heightfield(self, params: TerrainParameters) -> np.ndarray:
        """
        Returns the (grid_height, grid_width) array of vertex heights.

        Each vertex sums `octaves` layers; each layer is a classic fractal of
        `detail_octaves` octaves. The number of noise evaluations per vertex
        is therefore octaves * detail_octaves.
        """
        self.validate(params)
        return _layered_heightfield(
            self.permutation_table,
            params.grid_width, params.grid_height,
            grid_scale(params.grid_width, params.grid_height),
            params.octaves, params.effective_detail_octaves,
            float(params.persistence), float(params.lacunarity),
            float(params.base_amplitude), float(params.base_frequency),
        )

    def build_geometry(self, params: TerrainParameters) -> Mesh:
        """Builds positions, texture coordinates and indices. Normals are left zeroed."""
        self.validate(params)
        width, height = params.grid_width, params.grid_height
        scale = grid_scale(width, height)

        heights = self.heightfield(params)
        mesh = Mesh.allocate(width, height, triangulate(width, height))

        xs = np.arange(width) * scale - _HALF_EXTENT
        zs = np.arange(height) * scale - _HALF_EXTENT
        x_grid, z_grid = np.meshgrid(xs, zs)
        mesh.vertices["position"] = np.column_stack([x_grid.ravel(), heights.ravel(), z_grid.ravel()])

        u_grid, v_grid = np.meshgrid(np.arange(width) / (width - 1), np.arange(height) / (height - 1))
        mesh.vertices["texcoord"] = np.column_stack([u_grid.ravel(), v_grid.ravel()])
        return mesh

    def synthesize(self, params: TerrainParameters) -> Mesh:
        """
        Generates a complete mesh for the given parameters.
        Raises InvalidParameterError before any computation if the
        parameters are out of range.
        """
        self.validate(params)
        start_time = time.perf_counter()

        mesh = self.build_geometry(params)
        self.normal_estimator.apply(mesh)

        elapsed = time.perf_counter() - start_time
        self.logger.debug(
            f"Synthesized {params.grid_width}x{params.grid_height} mesh "
            f"({mesh.vertex_count} vertices, {mesh.triangle_count} triangles) in {elapsed:.3f} seconds."
        )
        return mesh

# terrain_generator/normals.py

"""
================================================================================
VERTEX NORMAL ESTIMATION
================================================================================
Derives per-vertex normals for a triangle mesh by accumulating the unit
normal of every incident face and renormalizing.

Data Contract:
---------------
- Inputs:
    - positions: (N, 3) float array of vertex positions.
    - indices: flat or (M, 3) integer array of triangle corners.
- Outputs:
    - (N, 3) float32 array of unit normals.
- Side Effects: Records and logs the number of zero-area faces.
- Invariants:
    - Every face contributes equally, regardless of its area.
    - Zero-area faces contribute nothing. A vertex with no usable direction
      receives the up-vector (0, 1, 0) instead of NaN.
================================================================================
"""

import logging

import numpy as np

from . import config as DEFAULTS
from .mesh import Mesh


class NormalEstimator:
    """Computes smooth vertex normals from face normals."""

    def __init__(self, logger: logging.Logger = None, epsilon: float = DEFAULTS.DEGENERATE_AREA_EPSILON):
        self.logger = logger or logging.getLogger(__name__)
        self.epsilon = epsilon
        self.degenerate_face_count = 0
        self.fallback_vertex_count = 0

    def estimate(self, positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
        positions = np.asarray(positions, dtype=np.float64)
        triangles = np.asarray(indices, dtype=np.int64).reshape(-1, 3)

        # 1. Face normals from the two edges leaving the first corner.
        v0 = positions[triangles[:, 0]]
        v1 = positions[triangles[:, 1]]
        v2 = positions[triangles[:, 2]]
        face_normals = np.cross(v1 - v0, v2 - v0)

        lengths = np.linalg.norm(face_normals, axis=1)
        degenerate = lengths <= self.epsilon
        valid = ~degenerate
        face_normals[valid] /= lengths[valid, np.newaxis]
        face_normals[degenerate] = 0.0

        # 2. Scatter each face normal into its three corners.
        # np.add.at is unbuffered, so vertices shared by several faces accumulate correctly.
        accumulated = np.zeros_like(positions)
        for corner in range(3):
            np.add.at(accumulated, triangles[:, corner], face_normals)

        # 3. Renormalize, falling back to the up-vector where nothing accumulated.
        magnitudes = np.linalg.norm(accumulated, axis=1)
        usable = magnitudes > self.epsilon
        normals = np.empty_like(accumulated)
        normals[usable] = accumulated[usable] / magnitudes[usable, np.newaxis]
        normals[~usable] = DEFAULTS.UP_VECTOR

        self.degenerate_face_count = int(np.count_nonzero(degenerate))
        self.fallback_vertex_count = int(np.count_nonzero(~usable))
        if self.degenerate_face_count:
            self.logger.warning(
                f"Skipped {self.degenerate_face_count} zero-area faces; "
                f"{self.fallback_vertex_count} vertices fell back to the up-vector."
            )
        return normals.astype(np.float32)

    def apply(self, mesh: Mesh) -> Mesh:
        """Fills the mesh's normal field in place and returns the mesh."""
        mesh.vertices["normal"] = self.estimate(mesh.positions, mesh.indices)
        return mesh

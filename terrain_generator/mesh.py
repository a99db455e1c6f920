# terrain_generator/mesh.py

"""
Triangle mesh container produced by the HeightfieldSynthesizer.

Vertices live in a single NumPy structured array (position, texcoord, normal)
stored row-major over the grid, so vertex (x, z) sits at index z * width + x.
"""

from dataclasses import dataclass

import numpy as np

from .errors import TerrainError

VERTEX_DTYPE = np.dtype([
    ("position", np.float32, 3),
    ("texcoord", np.float32, 2),
    ("normal", np.float32, 3),
])

INDEX_DTYPE = np.uint32


@dataclass
class Mesh:
    width: int
    height: int
    vertices: np.ndarray
    indices: np.ndarray

    @classmethod
    def allocate(cls, width: int, height: int, indices: np.ndarray) -> "Mesh":
        """Creates a mesh with zeroed vertices for a width x height grid."""
        vertices = np.zeros(width * height, dtype=VERTEX_DTYPE)
        return cls(width=width, height=height, vertices=vertices,
                   indices=np.ascontiguousarray(indices, dtype=INDEX_DTYPE))

    @property
    def positions(self) -> np.ndarray:
        return self.vertices["position"]

    @property
    def texcoords(self) -> np.ndarray:
        return self.vertices["texcoord"]

    @property
    def normals(self) -> np.ndarray:
        return self.vertices["normal"]

    @property
    def heights(self) -> np.ndarray:
        """Vertex heights as a (height, width) grid."""
        return self.vertices["position"][:, 1].reshape(self.height, self.width)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def interleaved(self, include_normals: bool = True) -> np.ndarray:
        """
        Packs the vertices as a contiguous float32 buffer of
        (x, y, z, u, v[, nx, ny, nz]) rows, ready for a vertex buffer upload.
        """
        columns = [self.positions, self.texcoords]
        if include_normals:
            columns.append(self.normals)
        return np.ascontiguousarray(np.hstack(columns), dtype=np.float32)

    def validate(self) -> None:
        """Raises TerrainError if the grid mesh invariants are broken."""
        expected_vertices = self.width * self.height
        expected_indices = 6 * (self.width - 1) * (self.height - 1)
        if self.vertex_count != expected_vertices:
            raise TerrainError(f"Expected {expected_vertices} vertices, found {self.vertex_count}")
        if len(self.indices) != expected_indices:
            raise TerrainError(f"Expected {expected_indices} indices, found {len(self.indices)}")
        if self.indices.dtype != INDEX_DTYPE:
            raise TerrainError(f"Indices must be {np.dtype(INDEX_DTYPE)}, found {self.indices.dtype}")
        if len(self.indices) and int(self.indices.max()) >= self.vertex_count:
            raise TerrainError(f"Index {int(self.indices.max())} out of range for {self.vertex_count} vertices")

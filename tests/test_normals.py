"""Tests for vertex normal estimation."""

import logging

import numpy as np
import pytest

from terrain_generator import NormalEstimator, TerrainParameters, triangulate


def flat_grid(width, height):
    xs, zs = np.meshgrid(np.linspace(-0.5, 0.5, width), np.linspace(-0.5, 0.5, height))
    return np.column_stack([xs.ravel(), np.zeros(width * height), zs.ravel()])


@pytest.fixture
def estimator(logger):
    return NormalEstimator(logger)


class TestNormalEstimator:

    def test_flat_grid_points_up(self, estimator):
        normals = estimator.estimate(flat_grid(5, 4), triangulate(5, 4))
        assert np.allclose(normals, [0.0, 1.0, 0.0])
        assert estimator.degenerate_face_count == 0
        assert estimator.fallback_vertex_count == 0

    def test_output_dtype_and_shape(self, estimator):
        normals = estimator.estimate(flat_grid(3, 3), triangulate(3, 3))
        assert normals.shape == (9, 3)
        assert normals.dtype == np.float32

    def test_synthesized_normals_are_unit_and_upward(self, synthesizer):
        mesh = synthesizer.synthesize(TerrainParameters(grid_width=24, grid_height=17, octaves=4))
        lengths = np.linalg.norm(mesh.normals, axis=1)
        assert np.allclose(lengths, 1.0, atol=1e-4)
        assert (mesh.normals[:, 1] > 0.0).all()

    def test_winding_sets_direction(self, estimator):
        positions = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [1.0, 0.0, 0.0]])
        up = estimator.estimate(positions, np.array([0, 1, 2]))
        down = estimator.estimate(positions, np.array([0, 2, 1]))
        assert np.allclose(up, [0.0, 1.0, 0.0])
        assert np.allclose(down, [0.0, -1.0, 0.0])

    def test_faces_are_not_area_weighted(self, estimator):
        positions = np.array([
            [0.0, 0.0, 0.0],
            [0.0, 0.0, 1.0],
            [1.0, 0.0, 0.0],
            [0.0, 10.0, 0.0],
            [0.0, 0.0, 10.0],
        ])
        # A small upward face and a large +x face share vertex 0.
        indices = np.array([0, 1, 2, 0, 3, 4])
        normals = estimator.estimate(positions, indices)
        assert np.allclose(normals[0], [np.sqrt(0.5), np.sqrt(0.5), 0.0], atol=1e-6)

    def test_accepts_triangle_rows(self, estimator):
        indices = triangulate(3, 3)
        flat = estimator.estimate(flat_grid(3, 3), indices)
        rows = estimator.estimate(flat_grid(3, 3), indices.reshape(-1, 3))
        assert np.array_equal(flat, rows)


class TestDegenerateFaces:

    def test_collapsed_mesh_falls_back_to_up(self, estimator):
        positions = np.zeros((9, 3))
        normals = estimator.estimate(positions, triangulate(3, 3))
        assert np.isfinite(normals).all()
        assert np.allclose(normals, [0.0, 1.0, 0.0])
        assert estimator.degenerate_face_count == 8
        assert estimator.fallback_vertex_count == 9

    def test_degenerate_face_is_skipped(self, estimator):
        positions = np.array([
            [0.0, 0.0, 0.0],
            [0.0, 0.0, 1.0],
            [1.0, 0.0, 0.0],
            [5.0, 1.0, 5.0],
        ])
        # The second face repeats one corner and has zero area.
        indices = np.array([0, 1, 2, 3, 3, 2])
        normals = estimator.estimate(positions, indices)
        assert estimator.degenerate_face_count == 1
        assert estimator.fallback_vertex_count == 1
        assert np.allclose(normals[2], [0.0, 1.0, 0.0])
        assert np.allclose(normals[3], [0.0, 1.0, 0.0])

    def test_degenerate_faces_are_logged(self, estimator, caplog):
        with caplog.at_level(logging.WARNING, logger="terrain-tests"):
            estimator.estimate(np.zeros((4, 3)), triangulate(2, 2))
        assert "zero-area" in caplog.text

    def test_apply_fills_mesh(self, synthesizer, small_params, estimator):
        mesh = synthesizer.build_geometry(small_params)
        assert not mesh.normals.any()
        estimator.apply(mesh)
        assert np.allclose(np.linalg.norm(mesh.normals, axis=1), 1.0, atol=1e-5)

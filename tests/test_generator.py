"""Tests for heightfield synthesis and mesh assembly."""

import numpy as np
import pytest

from terrain_generator import (
    HeightfieldSynthesizer,
    InvalidParameterError,
    Mesh,
    TerrainError,
    TerrainParameters,
    build_permutation_table,
    synthesize_terrain,
    triangulate,
)
from terrain_generator.generator import grid_scale

import reference_noise


class TestTriangulation:

    def test_single_cell_winding(self):
        assert triangulate(2, 2).tolist() == [0, 2, 1, 1, 2, 3]

    def test_second_cell_follows_row_major(self):
        indices = triangulate(3, 2)
        assert indices[6:].tolist() == [1, 4, 2, 2, 4, 5]

    def test_index_dtype(self):
        assert triangulate(5, 4).dtype == np.uint32

    @pytest.mark.parametrize("width, height", [(2, 2), (4, 4), (7, 3), (3, 9)])
    def test_index_count_and_bounds(self, width, height):
        indices = triangulate(width, height)
        assert len(indices) == 6 * (width - 1) * (height - 1)
        assert indices.max() < width * height


class TestMeshLayout:
    """Vertex buffer layout of synthesized meshes."""

    @pytest.mark.parametrize("width, height", [(2, 2), (4, 4), (8, 5), (3, 10)])
    def test_counts(self, synthesizer, width, height):
        mesh = synthesizer.synthesize(TerrainParameters(grid_width=width, grid_height=height, octaves=2))
        assert mesh.vertex_count == width * height
        assert len(mesh.indices) == 6 * (width - 1) * (height - 1)
        assert mesh.triangle_count == 2 * (width - 1) * (height - 1)
        assert mesh.indices.max() < mesh.vertex_count
        mesh.validate()

    def test_square_grid_spans_unit_square(self, synthesizer, small_params):
        mesh = synthesizer.synthesize(small_params)
        positions = mesh.positions
        assert positions[0, 0] == pytest.approx(-0.5)
        assert positions[0, 2] == pytest.approx(-0.5)
        assert positions[-1, 0] == pytest.approx(0.5)
        assert positions[-1, 2] == pytest.approx(0.5)

    def test_non_square_grid_keeps_uniform_spacing(self, synthesizer):
        mesh = synthesizer.synthesize(TerrainParameters(grid_width=5, grid_height=3, octaves=1))
        assert grid_scale(5, 3) == pytest.approx(0.25)
        x = mesh.positions[:, 0].reshape(3, 5)
        z = mesh.positions[:, 2].reshape(3, 5)
        assert np.allclose(x[0], [-0.5, -0.25, 0.0, 0.25, 0.5])
        assert np.allclose(z[:, 0], [-0.5, -0.25, 0.0])

    def test_vertex_index_is_row_major(self, synthesizer):
        mesh = synthesizer.synthesize(TerrainParameters(grid_width=6, grid_height=4, octaves=1))
        # Vertex (x=2, z=1) lives at index 1 * 6 + 2.
        assert mesh.positions[8, 0] == pytest.approx(2 * 0.2 - 0.5)
        assert mesh.positions[8, 2] == pytest.approx(1 * 0.2 - 0.5)

    def test_texcoords_cover_unit_square(self, synthesizer):
        mesh = synthesizer.synthesize(TerrainParameters(grid_width=5, grid_height=3, octaves=1))
        uv = mesh.texcoords.reshape(3, 5, 2)
        assert np.allclose(uv[0, :, 0], [0.0, 0.25, 0.5, 0.75, 1.0])
        assert np.allclose(uv[:, 0, 1], [0.0, 0.5, 1.0])

    def test_interleaved_buffers(self, synthesizer, small_params):
        mesh = synthesizer.synthesize(small_params)
        full = mesh.interleaved()
        compact = mesh.interleaved(include_normals=False)
        assert full.shape == (16, 8)
        assert compact.shape == (16, 5)
        assert full.dtype == np.float32
        assert full.flags["C_CONTIGUOUS"]
        assert np.array_equal(full[:, 5:], mesh.normals)

    def test_heights_grid(self, synthesizer):
        mesh = synthesizer.synthesize(TerrainParameters(grid_width=5, grid_height=3, octaves=2))
        assert mesh.heights.shape == (3, 5)
        assert mesh.heights[2, 4] == mesh.positions[-1, 1]

    def test_validate_rejects_out_of_range_index(self, synthesizer, small_params):
        mesh = synthesizer.synthesize(small_params)
        broken = Mesh(mesh.width, mesh.height, mesh.vertices, mesh.indices.copy())
        broken.indices[0] = 99
        with pytest.raises(TerrainError):
            broken.validate()


class TestHeightfield:
    """Layered height sampling."""

    def test_deterministic_for_seed(self, small_params):
        first = HeightfieldSynthesizer({'seed': 123}).synthesize(small_params)
        second = HeightfieldSynthesizer({'seed': 123}).synthesize(small_params)
        assert np.array_equal(first.vertices, second.vertices)
        assert np.array_equal(first.indices, second.indices)

    def test_scenario_sizes(self, synthesizer, small_params):
        mesh = synthesizer.synthesize(small_params)
        assert mesh.vertex_count == 16
        assert len(mesh.indices) == 54
        assert mesh.triangle_count == 18
        assert mesh.normals.shape == (16, 3)

    def test_single_octave_scenario_is_pinned(self):
        params = TerrainParameters(grid_width=4, grid_height=4, octaves=1, persistence=0.5,
                                   lacunarity=2.0, base_amplitude=0.5, base_frequency=0.4)
        mesh = synthesize_terrain(params, seed=123)
        assert mesh.positions[0, 1] == pytest.approx(0.3374095857143402, abs=1e-5)
        assert mesh.vertex_count == 16
        assert len(mesh.indices) == 54
        assert mesh.normals.shape == (16, 3)
        np.testing.assert_allclose(np.linalg.norm(mesh.normals, axis=1), 1.0, atol=1e-4)

    def test_first_vertex_height(self, synthesizer, small_params):
        mesh = synthesizer.synthesize(small_params)
        p = synthesizer.permutation_table
        expected = sum(
            0.5 * 0.5 ** layer * reference_noise.classic_2d(p, -0.5 * 0.4 * 2.0 ** layer,
                                                            -0.5 * 0.4 * 2.0 ** layer, 4, 0.5)
            for layer in range(4)
        )
        assert mesh.positions[0, 1] == pytest.approx(expected, abs=1e-6)

    @pytest.mark.parametrize("seed", [0, 123, 2024])
    def test_lattice_corner_height(self, seed):
        # Frequency 2 puts the (-0.5, -0.5) corner on the noise lattice.
        params = TerrainParameters(grid_width=4, grid_height=4, octaves=1, base_amplitude=0.5, base_frequency=2.0)
        mesh = HeightfieldSynthesizer({'seed': seed}).synthesize(params)
        assert mesh.positions[0, 1] == 0.25

    def test_matches_reference(self, synthesizer):
        params = TerrainParameters(grid_width=5, grid_height=4, octaves=3, persistence=0.6,
                                   lacunarity=2.5, base_amplitude=0.8, base_frequency=0.7)
        expected = reference_noise.heightfield(synthesizer.permutation_table, 5, 4, 3, 0.6, 2.5, 0.8, 0.7)
        np.testing.assert_allclose(synthesizer.heightfield(params), expected, rtol=0, atol=1e-12)

    def test_detail_octaves_decouple_layers(self, synthesizer):
        params = TerrainParameters(grid_width=6, grid_height=6, octaves=3, detail_octaves=1)
        expected = reference_noise.heightfield(synthesizer.permutation_table, 6, 6, 3, 0.5, 2.0, 0.5, 0.4,
                                               detail_octaves=1)
        np.testing.assert_allclose(synthesizer.heightfield(params), expected, rtol=0, atol=1e-12)
        assert not np.allclose(synthesizer.heightfield(params.with_changes(detail_octaves=None)), expected)

    def test_heights_bounded_by_amplitude_sum(self, synthesizer):
        params = TerrainParameters(grid_width=16, grid_height=16, octaves=5, persistence=0.7, base_amplitude=2.0)
        heights = synthesizer.heightfield(params)
        bound = sum(2.0 * 0.7 ** i for i in range(5))
        assert heights.min() >= 0.0
        assert heights.max() <= bound

    def test_seed_changes_terrain(self, small_params):
        a = HeightfieldSynthesizer({'seed': 1}).heightfield(small_params)
        b = HeightfieldSynthesizer({'seed': 2}).heightfield(small_params)
        assert not np.array_equal(a, b)

    def test_injected_permutation_table(self, small_params):
        table = build_permutation_table(77)
        injected = HeightfieldSynthesizer({'seed': 5}, permutation_table=table)
        seeded = HeightfieldSynthesizer({'seed': 77})
        assert np.array_equal(injected.heightfield(small_params), seeded.heightfield(small_params))

    def test_module_level_synthesis(self, synthesizer, small_params):
        mesh = synthesize_terrain(small_params, seed=123)
        assert np.array_equal(mesh.vertices, synthesizer.synthesize(small_params).vertices)


class TestValidation:

    @pytest.mark.parametrize("changes, field", [
        ({'grid_width': 1}, "grid_width"),
        ({'grid_height': 0}, "grid_height"),
        ({'grid_width': 2.5}, "grid_width"),
        ({'octaves': 0}, "octaves"),
        ({'octaves': 11}, "octaves"),
        ({'detail_octaves': 0}, "detail_octaves"),
        ({'persistence': 0.0}, "persistence"),
        ({'persistence': 1.5}, "persistence"),
        ({'lacunarity': 0.5}, "lacunarity"),
        ({'base_amplitude': 0.0}, "base_amplitude"),
        ({'base_frequency': -1.0}, "base_frequency"),
        ({'base_frequency': float("nan")}, "base_frequency"),
    ])
    def test_invalid_parameters_raise(self, synthesizer, changes, field):
        params = TerrainParameters().with_changes(**changes)
        with pytest.raises(InvalidParameterError) as excinfo:
            synthesizer.synthesize(params)
        assert excinfo.value.field == field

    def test_max_octaves_is_configurable(self):
        synthesizer = HeightfieldSynthesizer({'seed': 1, 'max_octaves': 12})
        mesh = synthesizer.synthesize(TerrainParameters(grid_width=2, grid_height=2, octaves=12, detail_octaves=1))
        assert mesh.vertex_count == 4

"""Shared fixtures for the terrain generator tests."""

import logging

import pytest

from terrain_generator import GradientNoise, HeightfieldSynthesizer, TerrainParameters


@pytest.fixture
def logger():
    return logging.getLogger("terrain-tests")


@pytest.fixture
def noise():
    return GradientNoise(seed=123)


@pytest.fixture
def synthesizer(logger):
    return HeightfieldSynthesizer({'seed': 123}, logger)


@pytest.fixture
def small_params():
    """The 4x4, 4 octave scenario used throughout the tests."""
    return TerrainParameters(grid_width=4, grid_height=4, octaves=4, persistence=0.5,
                             lacunarity=2.0, base_amplitude=0.5, base_frequency=0.4)

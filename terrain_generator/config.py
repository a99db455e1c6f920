# terrain_generator/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the terrain
generator. These values are used if they are not explicitly provided by the
caller's configuration or parameter set.

DO NOT MODIFY THIS FILE FOR A SPECIFIC TERRAIN.
Instead, pass a configuration dictionary to the HeightfieldSynthesizer or a
TerrainParameters value to synthesize_terrain.
================================================================================
"""

# --- Noise Generation ---
DEFAULT_SEED = 1337
# Number of distinct lattice values; the noise field repeats every 256 units.
PERMUTATION_SIZE = 256
# The 4-argument classic fractal variant always doubles its frequency.
CLASSIC_LACUNARITY = 2.0

# --- Cellular (Voronoi) Hash Constants ---
# These constants define the visual identity of the cellular pattern.
# Changing any of them changes every feature point position.
VORONOI_Y_MULTIPLIER = 131
VORONOI_SHIFT = 13
VORONOI_PRIME_A = 15731
VORONOI_PRIME_B = 789221
VORONOI_PRIME_C = 1376312589
VORONOI_HASH_MASK = 0x7fffffff

# --- Terrain Layering ---
# Default terrain: 100x100 grid, 4 octaves.
DEFAULT_GRID_WIDTH = 100
DEFAULT_GRID_HEIGHT = 100
DEFAULT_OCTAVES = 4
DEFAULT_PERSISTENCE = 0.5
DEFAULT_LACUNARITY = 2.0
DEFAULT_BASE_AMPLITUDE = 0.5
DEFAULT_BASE_FREQUENCY = 0.4

# Upper bound for octave counts. The height loop runs octaves^2 noise
# evaluations per vertex, so this also bounds the cost of a regeneration.
MAX_OCTAVES = 10

# --- Mesh Geometry ---
# The local extent of the grid along its longest axis is [-0.5, 0.5].
GRID_HALF_EXTENT = 0.5
# Cross products at or below this magnitude are treated as zero-area faces.
DEGENERATE_AREA_EPSILON = 1e-12
# Fallback normal for vertices whose accumulated normal has no direction.
UP_VECTOR = (0.0, 1.0, 0.0)

# --- Height Band Materials ---
# Height thresholds used to blend grass, rock and snow.
HEIGHT_BANDS = {
    "grass": 0.3,   # Pure grass below this height
    "rock": 0.6,    # Grass->rock blend up to this height
    "snow": 1.0     # Rock->snow blend up to this height
}

# --- Baking ---
DEFAULT_OUTPUT_DIR = "baked_terrain"
PREVIEW_FILENAME = "heightmap.png"
MATERIAL_PREVIEW_FILENAME = "materials.png"

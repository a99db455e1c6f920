# terrain_generator/color_maps.py

"""
================================================================================
HEIGHT BAND MATERIALS & PREVIEW COLORS
================================================================================
This module converts terrain heights into material blend weights
(grass, rock, snow) and into RGB preview arrays.

It is a pure, stateless utility with no dependency on a graphics context, so
renderers can upload the weights as a vertex attribute and the offline baker
can write previews with Pillow.
================================================================================
"""
import numpy as np
from . import config as DEFAULTS

# --- Material ID Constants ---
MATERIAL_ID_GRASS = 0
MATERIAL_ID_ROCK = 1
MATERIAL_ID_SNOW = 2

# --- Default Color Mappings ---
COLOR_MAP_MATERIALS = {
    "grass": (34, 139, 34),
    "rock": (112, 128, 144),
    "snow": (255, 255, 255)
}


def create_material_color_lut() -> np.ndarray:
    """Creates a LUT where the index is the material ID and the value is the RGB color."""
    return np.array([
        COLOR_MAP_MATERIALS["grass"],
        COLOR_MAP_MATERIALS["rock"],
        COLOR_MAP_MATERIALS["snow"]
    ], dtype=np.float64)


def height_band_weights(heights: np.ndarray, bands: dict = None) -> np.ndarray:
    """
    Returns an (..., 3) float32 array of grass/rock/snow weights per height.

    Below the grass level the surface is pure grass. Between the grass and
    rock levels it blends grass into rock, and above the rock level it blends
    rock into snow, reaching pure snow at the snow level. Weights sum to 1.
    """
    bands = bands or DEFAULTS.HEIGHT_BANDS
    grass_level = bands["grass"]
    rock_level = bands["rock"]
    snow_level = bands["snow"]
    h = np.asarray(heights, dtype=np.float64)

    to_rock = np.clip((h - grass_level) / (rock_level - grass_level), 0.0, 1.0)
    to_snow = np.clip((h - rock_level) / (snow_level - rock_level), 0.0, 1.0)
    above_rock = h >= rock_level

    weights = np.zeros(h.shape + (3,), dtype=np.float64)
    weights[..., MATERIAL_ID_GRASS] = np.where(above_rock, 0.0, 1.0 - to_rock)
    weights[..., MATERIAL_ID_ROCK] = np.where(above_rock, 1.0 - to_snow, to_rock)
    weights[..., MATERIAL_ID_SNOW] = np.where(above_rock, to_snow, 0.0)
    return weights.astype(np.float32)


def normalize_heights(heights: np.ndarray) -> np.ndarray:
    """Rescales heights to [0, 1]. A perfectly flat field maps to zeros."""
    h = np.asarray(heights, dtype=np.float64)
    h_min = h.min()
    h_range = h.max() - h_min
    if h_range > 0:
        return (h - h_min) / h_range
    return np.zeros_like(h)


def get_material_color_array(heights: np.ndarray) -> np.ndarray:
    """Blends the material colors by their height band weights into an RGB array."""
    weights = height_band_weights(heights).astype(np.float64)
    colors = weights @ create_material_color_lut()
    return np.clip(np.round(colors), 0, 255).astype(np.uint8)


def get_elevation_color_array(elevation_values: np.ndarray) -> np.ndarray:
    """Converts normalized elevation data [0, 1] into a grayscale RGB color array."""
    # Scale the normalized [0, 1] float values to [0, 255] integer grayscale values.
    gray_values = (np.clip(elevation_values, 0.0, 1.0) * 255).astype(np.uint8)
    return np.stack([gray_values] * 3, axis=-1)

# terrain_generator/parameters.py

"""
================================================================================
TERRAIN PARAMETERS
================================================================================
The value record that fully describes one terrain regeneration.

Data Contract:
---------------
- TerrainParameters is immutable. Changes produce a new value through
  `with_changes`, which makes every instance safe to keep as an undo snapshot.
- `validate` raises InvalidParameterError naming the first offending field.
- Parameters are plain data and round-trip through JSON via to_dict/from_dict.
================================================================================
"""

import dataclasses
import math
import numbers
from dataclasses import dataclass
from typing import Optional

import numpy as np

from . import config as DEFAULTS
from .errors import InvalidParameterError


@dataclass(frozen=True)
class TerrainParameters:
    """
    Layering parameters for one terrain mesh.

    The height of each vertex sums `octaves` layers of classic fractal noise,
    and every layer itself evaluates `detail_octaves` octaves. Leaving
    detail_octaves as None reuses `octaves`, which gives the default
    octaves x octaves compounding.
    """
    grid_width: int = DEFAULTS.DEFAULT_GRID_WIDTH
    grid_height: int = DEFAULTS.DEFAULT_GRID_HEIGHT
    octaves: int = DEFAULTS.DEFAULT_OCTAVES
    persistence: float = DEFAULTS.DEFAULT_PERSISTENCE
    lacunarity: float = DEFAULTS.DEFAULT_LACUNARITY
    base_amplitude: float = DEFAULTS.DEFAULT_BASE_AMPLITUDE
    base_frequency: float = DEFAULTS.DEFAULT_BASE_FREQUENCY
    detail_octaves: Optional[int] = None

    @property
    def effective_detail_octaves(self) -> int:
        return self.octaves if self.detail_octaves is None else self.detail_octaves

    def validate(self, max_octaves: int = DEFAULTS.MAX_OCTAVES) -> "TerrainParameters":
        """Checks every field and returns self so calls can be chained."""
        _require_int("grid_width", self.grid_width, minimum=2)
        _require_int("grid_height", self.grid_height, minimum=2)
        _require_int("octaves", self.octaves, minimum=1, maximum=max_octaves)
        if self.detail_octaves is not None:
            _require_int("detail_octaves", self.detail_octaves, minimum=1, maximum=max_octaves)

        _require_real("persistence", self.persistence)
        if not 0.0 < self.persistence <= 1.0:
            raise InvalidParameterError("persistence", self.persistence, "must be in (0, 1]")
        _require_real("lacunarity", self.lacunarity)
        if self.lacunarity < 1.0:
            raise InvalidParameterError("lacunarity", self.lacunarity, "must be >= 1")
        _require_real("base_amplitude", self.base_amplitude)
        if self.base_amplitude <= 0.0:
            raise InvalidParameterError("base_amplitude", self.base_amplitude, "must be > 0")
        _require_real("base_frequency", self.base_frequency)
        if self.base_frequency <= 0.0:
            raise InvalidParameterError("base_frequency", self.base_frequency, "must be > 0")
        return self

    def with_changes(self, **delta) -> "TerrainParameters":
        """Returns a copy with the given fields replaced. Values are not validated here."""
        unknown = set(delta) - FIELD_NAMES
        if unknown:
            name = sorted(unknown)[0]
            raise InvalidParameterError(name, delta[name], "unknown terrain parameter")
        return dataclasses.replace(self, **delta)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TerrainParameters":
        """Builds parameters from a mapping; missing keys fall back to the defaults."""
        return cls().with_changes(**dict(data))


FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(TerrainParameters))

# Fields holding counts; everything else is a float.
_INT_FIELDS = frozenset({"grid_width", "grid_height", "octaves", "detail_octaves"})


def _require_int(name, value, minimum, maximum=None):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidParameterError(name, value, "must be an integer")
    if value < minimum:
        raise InvalidParameterError(name, value, f"must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise InvalidParameterError(name, value, f"must be <= {maximum}")


def _require_real(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameterError(name, value, "must be a number")
    if not math.isfinite(value):
        raise InvalidParameterError(name, value, "must be finite")


def coerce_value(name: str, text: str):
    """Converts a textual value to the type of the named field."""
    if name not in FIELD_NAMES:
        raise InvalidParameterError(name, text, "unknown terrain parameter")
    text = text.strip()
    if name == "detail_octaves" and text.lower() in ("", "none", "auto"):
        return None
    try:
        if name in _INT_FIELDS:
            return int(text)
        return float(text)
    except ValueError:
        expected = "an integer" if name in _INT_FIELDS else "a number"
        raise InvalidParameterError(name, text, f"must be {expected}") from None


def parse_assignment(command: str) -> tuple:
    """
    Parses a 'key=value' command into a typed (field, value) pair.
    Dashes in the key are accepted in place of underscores.
    """
    key, sep, value = command.partition("=")
    if not sep:
        raise InvalidParameterError("command", command, "expected key=value")
    name = key.strip().replace("-", "_")
    return name, coerce_value(name, value)

# terrain_generator/errors.py

"""
Exception types raised by the terrain generator.

Only parameter validation raises. Degenerate geometry is recovered locally by
the NormalEstimator and an empty undo history is reported as None.
"""


class TerrainError(Exception):
    """Base class for all terrain generator errors."""


class InvalidParameterError(TerrainError, ValueError):
    """A terrain parameter is outside its valid range or has the wrong type."""

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for '{field}': {value!r} ({reason})")

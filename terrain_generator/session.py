# terrain_generator/session.py

"""
================================================================================
TERRAIN SESSION
================================================================================
This module provides the TerrainSession class, the orchestrator that external
collaborators (CLI, chat front ends, editors) drive. It owns the "current"
parameters, the published mesh and the undo history; the synthesizer itself
stays stateless between calls.

Data Contract:
---------------
- Public Methods:
    - synthesize_terrain(params): Validates, records history, regenerates and
      publishes a new mesh.
    - apply_changes(**delta): Regenerates from the current parameters with
      some fields replaced.
    - undo_last_change(): Regenerates with the most recent snapshot and
      returns it, or returns None if there is nothing to revert.
- Public Properties:
    - current, mesh, history, state.
- Side Effects: Logs messages using the provided logger.
- Invariants:
    - A rejected regeneration leaves history, current parameters and the
      published mesh untouched.
    - The published mesh is only ever replaced by a fully built mesh.
================================================================================
"""

import logging
import threading
from enum import Enum
from typing import Optional

from .errors import InvalidParameterError
from .generator import HeightfieldSynthesizer
from .history import ParameterHistory
from .mesh import Mesh
from .parameters import TerrainParameters


class SessionState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SYNTHESIZING = "synthesizing"
    ESTIMATING_NORMALS = "estimating_normals"


class TerrainSession:
    """Holds the published terrain and regenerates it on request."""

    def __init__(self, config: dict = None, logger: logging.Logger = None,
                 synthesizer: HeightfieldSynthesizer = None, initial: TerrainParameters = None):
        """
        Args:
            config (dict, optional): Settings forwarded to a new synthesizer.
            logger (logging.Logger, optional): The logger instance for all output.
            synthesizer (HeightfieldSynthesizer, optional): An existing
                synthesizer to reuse instead of building one from config.
            initial (TerrainParameters, optional): If given, the first terrain
                is synthesized immediately. It does not create an undo entry.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.synthesizer = synthesizer or HeightfieldSynthesizer(config, self.logger)
        self.history = ParameterHistory(self.logger)
        self.current: Optional[TerrainParameters] = None
        self.mesh: Optional[Mesh] = None
        self.state = SessionState.IDLE
        self._lock = threading.RLock()

        if initial is not None:
            self.synthesize_terrain(initial)

    def synthesize_terrain(self, params: TerrainParameters) -> Mesh:
        """Regenerates the terrain and records the previous parameters for undo."""
        return self._regenerate(params, record_history=True)

    def apply_changes(self, **delta) -> Mesh:
        """Regenerates from the current (or default) parameters with the given fields replaced."""
        base = self.current if self.current is not None else TerrainParameters()
        return self.synthesize_terrain(base.with_changes(**delta))

    def undo_last_change(self) -> Optional[TerrainParameters]:
        """
        Reverts to the parameters in use before the last regeneration.
        Returns those parameters, or None if the history is empty.
        """
        with self._lock:
            snapshot = self.history.pop()
            if snapshot is None:
                return None
            self.logger.info("Reverting to previous terrain parameters.")
            try:
                self._regenerate(snapshot, record_history=False)
            except Exception:
                # The revert did not publish, so the snapshot is still the way back.
                self.history.push(snapshot)
                raise
            return snapshot

    def _regenerate(self, params: TerrainParameters, record_history: bool) -> Mesh:
        with self._lock:
            # --- 1. Validate before anything is touched ---
            self.state = SessionState.VALIDATING
            try:
                self.synthesizer.validate(params)
            except InvalidParameterError as e:
                self.state = SessionState.IDLE
                self.logger.warning(f"Regeneration rejected: {e}")
                raise

            # --- 2. Capture the pre-change parameters ---
            pushed = False
            if record_history and self.current is not None:
                self.history.push(self.current)
                pushed = True

            # --- 3. Build geometry and normals ---
            try:
                self.state = SessionState.SYNTHESIZING
                mesh = self.synthesizer.build_geometry(params)
                self.state = SessionState.ESTIMATING_NORMALS
                self.synthesizer.normal_estimator.apply(mesh)
            except Exception:
                # The published mesh is unchanged, so the snapshot must not linger.
                if pushed:
                    self.history.pop()
                raise
            finally:
                self.state = SessionState.IDLE

            # --- 4. Publish ---
            self.current = params
            self.mesh = mesh
            self.logger.info(
                f"Published {params.grid_width}x{params.grid_height} terrain "
                f"(octaves={params.octaves}, persistence={params.persistence}, "
                f"lacunarity={params.lacunarity}, amplitude={params.base_amplitude}, "
                f"frequency={params.base_frequency})."
            )
            return mesh

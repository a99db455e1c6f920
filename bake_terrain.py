# bake_terrain.py

"""
================================================================================
OFFLINE TERRAIN BAKER SCRIPT
================================================================================
This script is a command-line front end for the terrain generator. It builds
a terrain from a JSON configuration, applies parameter changes given as
'key=value' commands, optionally undoes the most recent changes, and writes
the resulting mesh buffers (plus optional preview images) to disk.

Usage:
    python bake_terrain.py --config path/to/config.json
    python bake_terrain.py --seed 123 --set octaves=6 persistence=0.4 --preview
    python bake_terrain.py --set octaves=8 --set lacunarity=2.5 --undo 1
    python bake_terrain.py --seeds 1 2 3 4 --output baked_terrain

Configuration file layout:
    {"seed": 123, "terrain_parameters": {"grid_width": 128, "octaves": 4}}
================================================================================
"""
import os
import sys
import json
import logging
import argparse
import multiprocessing
import time

import numpy as np
from PIL import Image
from tqdm import tqdm

from terrain_generator import config as DEFAULTS
from terrain_generator import color_maps
from terrain_generator.errors import TerrainError
from terrain_generator.mesh import Mesh
from terrain_generator.parameters import TerrainParameters, parse_assignment
from terrain_generator.session import TerrainSession


def load_config(config_path: str) -> dict:
    """Loads a JSON configuration file. Raises OSError or ValueError on failure."""
    with open(config_path, 'r') as f:
        return json.load(f)


def parse_changes(assignment_groups) -> list:
    """
    Converts the groups of 'key=value' strings from the command line into a
    list of parameter deltas, one delta per --set occurrence.
    """
    changes = []
    for group in assignment_groups or []:
        delta = dict(parse_assignment(item) for item in group)
        changes.append(delta)
    return changes


def save_mesh(mesh: Mesh, params: TerrainParameters, seed: int, output_dir: str,
              logger: logging.Logger, preview: bool = False) -> None:
    """Writes the mesh buffers, the generation config and optional previews."""
    os.makedirs(output_dir, exist_ok=True)

    np.save(os.path.join(output_dir, "vertices.npy"), mesh.interleaved(include_normals=False))
    np.save(os.path.join(output_dir, "normals.npy"), np.ascontiguousarray(mesh.normals))
    np.save(os.path.join(output_dir, "indices.npy"), mesh.indices)

    generation_config = {
        "seed": seed,
        "terrain_parameters": params.to_dict(),
        "vertex_count": mesh.vertex_count,
        "index_count": int(len(mesh.indices)),
        "vertex_layout": ["x", "y", "z", "u", "v"],
    }
    with open(os.path.join(output_dir, "generation_config.json"), 'w') as f:
        json.dump(generation_config, f, indent=2)
    logger.info(f"Saved {mesh.vertex_count} vertices and {len(mesh.indices)} indices to '{output_dir}'")

    if preview:
        heights = mesh.heights
        elevation = color_maps.get_elevation_color_array(color_maps.normalize_heights(heights))
        Image.fromarray(elevation, 'RGB').save(os.path.join(output_dir, DEFAULTS.PREVIEW_FILENAME))
        materials = color_maps.get_material_color_array(heights)
        Image.fromarray(materials, 'RGB').save(os.path.join(output_dir, DEFAULTS.MATERIAL_PREVIEW_FILENAME))
        logger.info(f"Saved preview images to '{output_dir}'")


def run_session(session: TerrainSession, initial: TerrainParameters, changes: list, undo_steps: int,
                logger: logging.Logger) -> TerrainParameters:
    """Generates the initial terrain, applies each change in order, then undoes."""
    session.synthesize_terrain(initial)
    for delta in changes:
        logger.info(f"Applying change: {delta}")
        session.apply_changes(**delta)
    for _ in range(undo_steps):
        if session.undo_last_change() is None:
            logger.info("No earlier parameters to revert to.")
            break
    return session.current


def bake_seed(job: dict) -> tuple:
    """
    A top-level, pickle-able function designed to be run in a worker process.
    It builds one terrain for one seed and saves it.
    """
    worker_logger = logging.getLogger(f"Worker-{os.getpid()}")
    seed = job['seed']
    try:
        session = TerrainSession({'seed': seed}, worker_logger)
        params = run_session(session, job['initial'], job['changes'], job['undo_steps'], worker_logger)
        save_mesh(session.mesh, params, seed, job['output_dir'], worker_logger, preview=job['preview'])
        return (seed, job['output_dir'], True)
    except TerrainError as e:
        # Use exc_info=True to log the full traceback from the worker process
        worker_logger.critical(f"WORKER: Failed to bake seed {seed}: {e}", exc_info=True)
        return (seed, job['output_dir'], False)


def bake_terrain(args: argparse.Namespace) -> int:
    """Runs the bake described by the parsed command line. Returns an exit code."""
    logger = logging.getLogger("TerrainBaker")

    # 1. --- Load Configuration ---
    config = {}
    if args.config:
        logger.info(f"Loading configuration from: {args.config}")
        try:
            config = load_config(args.config)
        except (OSError, json.JSONDecodeError) as e:
            logger.critical(f"Failed to load or parse config file: {e}")
            return 1

    seed = args.seed if args.seed is not None else config.get('seed', DEFAULTS.DEFAULT_SEED)
    try:
        initial = TerrainParameters.from_dict(config.get('terrain_parameters', {}))
        changes = parse_changes(args.set)
    except TerrainError as e:
        logger.critical(f"Invalid terrain parameters: {e}")
        return 1

    start_time = time.perf_counter()

    # 2. --- Batch bake over several seeds (parallelized) ---
    if args.seeds:
        jobs = [{
            'seed': s,
            'initial': initial,
            'changes': changes,
            'undo_steps': args.undo,
            'output_dir': os.path.join(args.output, f"seed_{s}"),
            'preview': args.preview,
        } for s in args.seeds]

        num_workers = max(1, min(len(jobs), multiprocessing.cpu_count() - 1))
        logger.info(f"Baking {len(jobs)} seeds using {num_workers} worker processes.")
        failures = 0
        with multiprocessing.Pool(processes=num_workers) as pool:
            for s, output_dir, ok in tqdm(pool.imap_unordered(bake_seed, jobs), total=len(jobs), desc="Baking Terrains"):
                if not ok:
                    failures += 1
                    logger.error(f"Seed {s} failed; nothing written to '{output_dir}'.")
        logger.info(f"Batch bake complete in {time.perf_counter() - start_time:.2f} seconds.")
        return 1 if failures else 0

    # 3. --- Single bake through one session ---
    try:
        session = TerrainSession({'seed': seed}, logger)
        params = run_session(session, initial, changes, args.undo, logger)
    except TerrainError as e:
        logger.critical(f"Terrain generation failed: {e}")
        return 1

    save_mesh(session.mesh, params, seed, args.output, logger, preview=args.preview)
    logger.info(f"Baking complete! Total time: {time.perf_counter() - start_time:.2f} seconds.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Offline terrain mesh baker.")
    parser.add_argument("--config", type=str, help="Path to a JSON configuration file.")
    parser.add_argument("--seed", type=int, help="Noise seed (overrides the config file).")
    parser.add_argument(
        "--set",
        nargs="+",
        action="append",
        metavar="KEY=VALUE",
        help="Apply a parameter change, e.g. --set octaves=6 persistence=0.4. "
             "Each --set is one undoable change."
    )
    parser.add_argument("--undo", type=int, default=0, help="Number of changes to undo after applying them.")
    parser.add_argument("--output", type=str, default=DEFAULTS.DEFAULT_OUTPUT_DIR, help="Output directory.")
    parser.add_argument("--preview", action="store_true", help="Also write heightmap and material PNG previews.")
    parser.add_argument("--seeds", type=int, nargs="+", help="Bake one terrain per seed in worker processes.")
    return parser


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    args = build_parser().parse_args(argv)
    return bake_terrain(args)


# --- Command-Line Interface ---
if __name__ == "__main__":
    sys.exit(main())

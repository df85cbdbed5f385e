#!/usr/bin/env python3
"""
Main entry point for the particle simulation.

Usage:
    python -m particle_sim.main                      # 4 bouncing particles
    python -m particle_sim.main --particles 200      # Crowded box
    python -m particle_sim.main --fluid --particles 800 --mass 3
    python -m particle_sim.main --backend numba      # Use Numba backend
"""

import argparse
import logging
import sys
from typing import Optional, Sequence, Tuple

from .config import (COLLISION_METHODS, SPAWN_LAYOUTS, ConfigurationError, SimulationConfig,
                     SpawnConfig)

logger = logging.getLogger("particle_sim")


def configure_logging(level: str = "INFO"):
    """Attach a plain message handler to the package logger."""
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)


def add_simulation_arguments(parser: argparse.ArgumentParser):
    """Arguments shared by the windowed and headless runners."""
    parser.add_argument(
        "--particles",
        type=int,
        default=4,
        help="Number of particles (default: 4)"
    )
    parser.add_argument(
        "--mass",
        type=float,
        default=10.0,
        help="Particle mass, also its radius in pixels (default: 10)"
    )
    parser.add_argument(
        "--gravity",
        type=float,
        default=9.81,
        help="Gravity factor, 0 disables gravity (default: 9.81)"
    )
    parser.add_argument(
        "--damping",
        type=float,
        default=0.9,
        help="Fraction of normal speed kept on wall contact (default: 0.9)"
    )
    parser.add_argument(
        "--restitution",
        type=float,
        default=1.0,
        help="Particle-particle restitution coefficient (default: 1.0)"
    )
    parser.add_argument(
        "--no-collisions",
        action="store_true",
        help="Disable particle-particle collisions"
    )
    parser.add_argument(
        "--collision-method",
        choices=COLLISION_METHODS,
        default="auto",
        help="Collision broad phase (default: auto)"
    )
    parser.add_argument(
        "--fluid",
        action="store_true",
        help="Enable SPH density and pressure stages"
    )
    parser.add_argument("--smoothing-radius", type=float, default=12.0)
    parser.add_argument("--target-density", type=float, default=0.01)
    parser.add_argument("--pressure-multiplier", type=float, default=500.0)
    parser.add_argument(
        "--backend",
        choices=["cpu", "numba", "auto"],
        default="auto",
        help="Backend for the fluid stages (default: auto)"
    )
    parser.add_argument(
        "--layout",
        choices=SPAWN_LAYOUTS,
        default="random",
        help="Initial particle placement (default: random)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--width", type=int, default=800, help="Domain width (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Domain height (default: 600)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level; DEBUG also logs every particle position each tick"
    )


def build_configs(args: argparse.Namespace) -> Tuple[SimulationConfig, SpawnConfig]:
    """Turn parsed arguments into validated configuration objects."""
    config = SimulationConfig(
        gravity_factor=args.gravity,
        damping=args.damping,
        collisions=not args.no_collisions,
        restitution=args.restitution,
        collision_method=args.collision_method,
        fluid=args.fluid,
        smoothing_radius=args.smoothing_radius,
        target_density=args.target_density,
        pressure_multiplier=args.pressure_multiplier,
        backend=args.backend,
    )
    config.validate()

    # Spawn inside the initial domain with a one-radius margin
    margin = args.mass
    half_w = max(args.width / 2.0 - margin, 1.0)
    half_h = max(args.height / 2.0 - margin, 1.0)
    spawn = SpawnConfig(
        count=args.particles,
        mass=args.mass,
        region=(-half_w, -half_h, half_w, half_h),
        seed=args.seed,
        layout=args.layout,
        jitter=args.mass * 0.25 if args.layout == "grid" else 0.0,
    )
    spawn.validate()
    return config, spawn


def main(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(description="2D Particle Simulation")
    add_simulation_arguments(parser)
    parser.add_argument(
        "--fps",
        type=int,
        default=60,
        help="Target FPS (default: 60)"
    )
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        config, spawn = build_configs(args)
    except ConfigurationError as e:
        parser.error(str(e))

    # Deferred so argument errors surface before pygame loads
    from .api import print_backend_info
    from .simulation import ParticleSimulation
    from .visualizer import SimulationVisualizer

    simulation = ParticleSimulation(config, spawn)

    print_backend_info()
    logger.info("Simulation info:")
    logger.info("  Particles: %d", simulation.n_particles)
    logger.info("  Domain: %dx%d", args.width, args.height)
    logger.info("  Fluid: %s", "on" if config.fluid else "off")
    logger.info("  Target FPS: %d", args.fps)
    logger.info("Setup complete")

    viz = SimulationVisualizer(
        simulation,
        window_size=(args.width, args.height),
        target_fps=args.fps,
        seed=args.seed,
    )

    logger.info("Starting visualization... (Space: pause, R: reset, ESC: exit)")
    viz.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())

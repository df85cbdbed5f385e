#!/usr/bin/env python3
"""
Headless version of main.py for testing without display.
Runs the simulation for a fixed number of steps and reports performance.
"""

import argparse
import sys
import time
from typing import Optional, Sequence

import numpy as np

from .api import print_backend_info
from .config import ConfigurationError, DomainBounds
from .main import add_simulation_arguments, build_configs, configure_logging, logger
from .simulation import ParticleSimulation


def main(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(description="2D Particle Simulation (Headless)")
    add_simulation_arguments(parser)
    parser.add_argument("--steps", type=int, default=100, help="Number of steps to run")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0,
                        help="Fixed tick length in seconds (default: 1/60)")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        config, spawn = build_configs(args)
        bounds = DomainBounds.from_surface(args.width, args.height)
    except ConfigurationError as e:
        parser.error(str(e))

    simulation = ParticleSimulation(config, spawn)
    print_backend_info()

    momentum_start = simulation.particles.momentum()
    energy_start = simulation.particles.kinetic_energy()

    logger.info("Running %d steps with %d particles...", args.steps, simulation.n_particles)
    stage_totals = {}
    t_start = time.perf_counter()

    for step in range(args.steps):
        report = simulation.step(args.dt, bounds)
        simulation.log_positions()
        for name, seconds in report.timings.items():
            stage_totals[name] = stage_totals.get(name, 0.0) + seconds

        if (step + 1) % max(1, args.steps // 10) == 0:
            logger.info("  Step %d/%d: max speed %.2f, collisions %s",
                        step + 1, args.steps, report.max_speed,
                        report.collisions.resolved if report.collisions else "-")

    elapsed = time.perf_counter() - t_start
    steps = max(args.steps, 1)

    logger.info("")
    logger.info("Performance:")
    logger.info("  Total time: %.3f s", elapsed)
    logger.info("  Steps/second: %.1f", args.steps / elapsed if elapsed > 0 else float('inf'))
    for name, seconds in stage_totals.items():
        logger.info("  %-10s %.3f ms/step", name + ":", 1000.0 * seconds / steps)

    particles = simulation.particles
    logger.info("")
    logger.info("Final state:")
    logger.info("  Simulated time: %.3f s", simulation.sim_time)
    logger.info("  Momentum: %s -> %s", np.round(momentum_start, 3),
                np.round(particles.momentum(), 3))
    logger.info("  Kinetic energy: %.3f -> %.3f", energy_start, particles.kinetic_energy())
    logger.info("  Position range: x [%.1f, %.1f], y [%.1f, %.1f]",
                particles.position_x.min(), particles.position_x.max(),
                particles.position_y.min(), particles.position_y.max())
    return 0


if __name__ == "__main__":
    sys.exit(main())

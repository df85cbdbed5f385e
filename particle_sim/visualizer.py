"""
Interactive pygame window for the particle simulation.

One world unit maps to one pixel with the origin at the window centre and +y
up, so the domain bounds follow the window size and change on resize.
"""

import logging
import random
from typing import List, Optional, Tuple

import numpy as np
import pygame
import pygame.gfxdraw

from .config import DomainBounds
from .simulation import ParticleSimulation

logger = logging.getLogger(__name__)


class SimulationVisualizer:
    """Pygame host loop: input, clock-driven ticks, and rendering."""

    def __init__(
        self,
        simulation: ParticleSimulation,
        window_size: Tuple[int, int] = (800, 600),
        target_fps: int = 60,
        max_dt: float = 1.0 / 30.0,
        title: str = "Fluid Simulation",
        seed: Optional[int] = None,
    ):
        """
        Initialize visualizer.

        Args:
            simulation: Simulation to drive
            window_size: Initial window size in pixels
            target_fps: Target frames per second
            max_dt: Upper bound on a single tick, so a stalled frame cannot
                teleport particles through each other
            title: Window title and on-screen caption
            seed: Seed for the particle colours
        """
        self.simulation = simulation
        self.target_fps = target_fps
        self.max_dt = max_dt
        self.title = title

        pygame.init()
        self.screen = pygame.display.set_mode(window_size, pygame.RESIZABLE)
        pygame.display.set_caption(title)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 28)
        self.small_font = pygame.font.Font(None, 20)

        self.bg_color = (20, 20, 28)
        self.colors = self.random_colors(simulation.n_particles, seed)

        self.running = True
        self.paused = False
        self.single_step = False
        self.show_info = True
        self.fps = 0.0
        self.bounds = DomainBounds.from_surface(*window_size)

    @staticmethod
    def random_colors(n: int, seed: Optional[int] = None) -> List[pygame.Color]:
        """One random pastel hue per particle."""
        rng = random.Random(seed)
        colors = []
        for _ in range(n):
            color = pygame.Color(0)
            color.hsla = (360.0 * rng.random() % 360.0, 95, 70, 100)
            colors.append(color)
        return colors

    def domain_bounds(self) -> DomainBounds:
        """Bounds of the current window; the last valid ones while it has no area."""
        width, height = self.screen.get_size()
        if width > 0 and height > 0:
            self.bounds = DomainBounds.from_surface(width, height)
        return self.bounds

    def run(self):
        """Main visualization loop."""
        while self.running:
            self.handle_events()
            dt = min(self.clock.tick(self.target_fps) / 1000.0, self.max_dt)

            if not self.paused or self.single_step:
                self.simulation.step(dt, self.domain_bounds())
                self.simulation.log_positions()
                self.single_step = False

            self.render()
            self.fps = self.clock.get_fps()

        pygame.quit()

    def handle_events(self):
        """Handle user input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.VIDEORESIZE:
                # pygame 2 resizes the display surface itself
                logger.debug("Window resized to %dx%d", event.w, event.h)
            elif event.type == pygame.KEYDOWN:
                self.handle_keydown(event)

    def handle_keydown(self, event):
        if event.key == pygame.K_ESCAPE:
            self.running = False
        elif event.key == pygame.K_SPACE:
            self.paused = not self.paused
        elif event.key == pygame.K_RIGHT and self.paused:
            self.single_step = True
        elif event.key == pygame.K_r:
            self.simulation.reset()
        elif event.key == pygame.K_i:
            self.show_info = not self.show_info

    def world_to_screen(self) -> Tuple[np.ndarray, np.ndarray]:
        """Screen coordinates of every particle (origin at centre, y flipped)."""
        width, height = self.screen.get_size()
        particles = self.simulation.particles
        screen_x = (particles.position_x + width / 2).astype(int)
        screen_y = (height / 2 - particles.position_y).astype(int)
        return screen_x, screen_y

    def render(self):
        self.screen.fill(self.bg_color)
        self.render_particles()
        self.render_info()
        pygame.display.flip()

    def render_particles(self):
        """Draw each particle as a circle of radius = mass pixels."""
        screen_x, screen_y = self.world_to_screen()
        radii = np.maximum(1, self.simulation.particles.mass.astype(int))

        for i in range(self.simulation.n_particles):
            x, y, radius = int(screen_x[i]), int(screen_y[i]), int(radii[i])
            if radius >= 2:
                pygame.gfxdraw.filled_circle(self.screen, x, y, radius, self.colors[i])
                pygame.gfxdraw.aacircle(self.screen, x, y, radius, self.colors[i])
            else:
                pygame.draw.circle(self.screen, self.colors[i], (x, y), radius)

    def render_info(self):
        caption = self.font.render(self.title, True, (230, 230, 230))
        self.screen.blit(caption, (12, 12))
        if not self.show_info:
            return

        sim = self.simulation
        lines = [
            f"Particles: {sim.n_particles}  |  Step: {sim.step_count}  |  FPS: {self.fps:.0f}",
            f"Time: {sim.sim_time:.2f}s  |  {'PAUSED' if self.paused else 'RUNNING'}",
        ]
        report = sim.last_report
        if report is not None:
            if report.collisions is not None:
                lines.append(f"Collisions: {report.collisions.resolved} "
                             f"({report.collisions.method})")
            if report.backend is not None:
                lines.append(f"Density: {report.mean_density:.4g}  |  Backend: {report.backend}")
        lines.append("Space: pause  Right: step  R: reset  I: info  Esc: quit")

        y = 40
        for line in lines:
            text = self.small_font.render(line, True, (190, 190, 200))
            self.screen.blit(text, (12, y))
            y += 18

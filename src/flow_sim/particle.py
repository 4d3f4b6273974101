"""
Particles advected through a VectorField.

A particle always moves at its speed cap: forces only steer it. Each step
records the segment it travelled, so a particle's trace is a polyline.

Simulation runs in two phases:
1. Warm-up: ``particle_loops`` passes over every particle so trajectories
   settle onto the field. Their segments are dropped unless requested.
2. Run-to-edge: every particle is stepped until it wraps around the canvas
   once, giving one uninterrupted polyline per particle.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .errors import DegenerateVectorError
from .geometry import Point, Rect, Vector, scaled_to
from .rng import SeededRandom
from .vector_field import VectorField

logger = logging.getLogger("flow_sim.particle")

# Multiple of the straight-line crossing time after which a particle that is
# still circling is stopped.
DEFAULT_STEP_BUDGET_FACTOR = 50


@dataclass
class Particle:
    x: float
    y: float
    max_velocity: float
    vx: float = 0.0
    vy: float = 0.0
    ax: float = 0.0
    ay: float = 0.0
    prev_x: float = field(init=False)
    prev_y: float = field(init=False)
    wrapped: bool = False
    trace: List[float] = field(default_factory=list)  # flat x0, y0, x1, y1, ...

    def __post_init__(self) -> None:
        self.prev_x = self.x
        self.prev_y = self.y

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    @property
    def previous_position(self) -> Point:
        return (self.prev_x, self.prev_y)

    @property
    def velocity(self) -> Vector:
        return (self.vx, self.vy)

    @property
    def acceleration(self) -> Vector:
        return (self.ax, self.ay)

    @property
    def segment_count(self) -> int:
        return len(self.trace) // 4

    def apply_force(self, force: Vector) -> None:
        self.ax += force[0]
        self.ay += force[1]

    def step(self) -> bool:
        """
        Advance one tick at constant speed.

        Returns False when velocity plus acceleration is the zero vector; the
        previous velocity is then kept since no direction is defined.
        """
        self.prev_x = self.x
        self.prev_y = self.y

        moving = True
        try:
            self.vx, self.vy = scaled_to(
                (self.vx + self.ax, self.vy + self.ay), self.max_velocity
            )
        except DegenerateVectorError:
            moving = False

        self.x += self.vx
        self.y += self.vy
        self.ax = 0.0
        self.ay = 0.0

        self.trace.extend((self.prev_x, self.prev_y, self.x, self.y))
        return moving

    def wrap(self, width: float, height: float) -> bool:
        """Toroidal wraparound; returns True if any axis wrapped."""
        wrapped = False
        if self.x > width:
            self.x = 0.0
            wrapped = True
        if self.x < 0.0:
            self.x = width
            wrapped = True
        if self.y > height:
            self.y = 0.0
            wrapped = True
        if self.y < 0.0:
            self.y = height
            wrapped = True
        if wrapped:
            self.prev_x = self.x
            self.prev_y = self.y
            self.wrapped = True
        return wrapped

    def clear_trace(self) -> None:
        self.trace.clear()

    def trace_array(self) -> np.ndarray:
        return np.asarray(self.trace, dtype=np.float64).reshape(-1, 4)


class ParticleSimulator:
    """Owns a particle population and advances it through a field."""

    def __init__(
        self,
        vector_field: VectorField,
        particle_count: int,
        max_velocity: float,
        particle_loops: int = 2,
        *,
        record_warmup: bool = False,
        max_steps_per_particle: Optional[int] = None,
    ) -> None:
        if vector_field.forces is None:
            raise RuntimeError("Vector field has no forces. Call build_forces() first.")
        if max_velocity <= 0:
            raise ValueError(f"max_velocity must be positive, got {max_velocity}")
        self.field = vector_field
        self.width = vector_field.width
        self.height = vector_field.height
        self.particle_count = int(particle_count)
        self.max_velocity = float(max_velocity)
        self.particle_loops = int(particle_loops)
        self.record_warmup = record_warmup
        if max_steps_per_particle is None:
            crossing = math.ceil(math.hypot(self.width, self.height) / self.max_velocity)
            max_steps_per_particle = DEFAULT_STEP_BUDGET_FACTOR * max(1, crossing)
        self.max_steps_per_particle = int(max_steps_per_particle)
        self.particles: List[Particle] = []

        self.stalled = 0
        self.exhausted = 0
        self.steps_taken = 0

    def spawn(self, rng: SeededRandom, rect: Optional[Rect] = None) -> List[Particle]:
        """Place ``particle_count`` resting particles uniformly inside ``rect``."""
        rect = rect or Rect(0.0, 0.0, self.width, self.height)
        self.particles = []
        for _ in range(self.particle_count):
            x, y = rng.point_in(rect)
            self.particles.append(Particle(x, y, self.max_velocity))
        return self.particles

    def update(self, particle: Particle) -> bool:
        particle.apply_force(self.field.vector_at(particle.position))
        moving = particle.step()
        particle.wrap(self.width, self.height)
        self.steps_taken += 1
        return moving

    def warm_up(self) -> None:
        for _ in range(self.particle_loops):
            for particle in self.particles:
                self.update(particle)
        if not self.record_warmup:
            for particle in self.particles:
                particle.clear_trace()

    def run_particle_to_edge(self, particle: Particle) -> bool:
        """
        Step ``particle`` until it wraps. Returns False if it had to be stopped
        early, either stalled in a zero field or out of step budget.
        """
        particle.wrapped = False
        steps = 0
        while not particle.wrapped:
            if not self.update(particle) and particle.velocity == (0.0, 0.0):
                self.stalled += 1
                return False
            steps += 1
            if not particle.wrapped and steps >= self.max_steps_per_particle:
                self.exhausted += 1
                return False
        return True

    def run_to_edge(self) -> None:
        t_start = time.perf_counter()
        report_every = max(1, len(self.particles) // 10)
        for index, particle in enumerate(self.particles, start=1):
            self.run_particle_to_edge(particle)
            if index % report_every == 0:
                logger.debug(
                    "[particles] %d/%d reached the edge, %d steps, elapsed=%.1fs",
                    index, len(self.particles), self.steps_taken,
                    time.perf_counter() - t_start,
                )
        if self.stalled or self.exhausted:
            logger.warning(
                "%d particles stalled and %d ran out of steps before wrapping",
                self.stalled, self.exhausted,
            )

    def run(self, rng: SeededRandom, rect: Optional[Rect] = None) -> np.ndarray:
        self.spawn(rng, rect)
        self.warm_up()
        self.run_to_edge()
        return self.lines()

    def lines(self) -> np.ndarray:
        """Every particle's trace, in particle order, as an (N, 4) array."""
        traces = [p.trace_array() for p in self.particles if p.trace]
        if not traces:
            return np.empty((0, 4), dtype=np.float64)
        return np.vstack(traces)


__all__ = ["Particle", "ParticleSimulator", "DEFAULT_STEP_BUDGET_FACTOR"]

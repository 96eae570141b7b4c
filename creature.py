"""
Creature and Obstacle records for the arena simulation.

Each creature has:
  - (x, y) position in arena coordinates (the border is not included)
  - a heading angle in radians
  - a survival score, one point per tick alive
  - a NeuralNetwork brain and the colour derived from it

Every tick a living creature:
  1. Gathers one distance reading per sensor ray from the occupancy surface
  2. Runs its neural network
  3. Turns by turn/8 and moves move*4 along its new heading

Obstacles are line segments drifting at a constant velocity.
"""

import math
import numpy as np
from neural_network import NeuralNetwork
from config import MAX_SCORE, TURN_DIVISOR, MOVE_SPEED, OBSTACLE_MIN_SPEED


class Creature:
    """
    A single agent in the evolutionary simulation.
    """
    __slots__ = ("x", "y", "angle", "score", "brain", "color", "_inputs")

    def __init__(self, x: float = 0.0, y: float = 0.0, angle: float = 0.0,
                 brain: NeuralNetwork = None, rng=None):
        self.x     = float(x)
        self.y     = float(y)
        self.angle = float(angle)
        self.score = 0
        self.brain = brain if brain is not None else NeuralNetwork(rng=rng)
        self.color = self.brain.color()
        # sensor buffer reused every tick
        self._inputs = np.zeros(self.brain.n_sensors, dtype=np.float64)

    # ──────────────────────────────────────────────────────────────────────────

    def reset(self, x: float, y: float, angle: float):
        """Re-initialise in place after the brain has been given new weights."""
        self.x     = float(x)
        self.y     = float(y)
        self.angle = float(angle)
        self.score = 0
        self.brain.reset_memory()
        self.color = self.brain.color()

    def weights(self) -> np.ndarray:
        return self.brain.get_weights()

    # ──────────────────────────────────────────────────────────────────────────

    def sense(self, surface, border: float) -> np.ndarray:
        """
        One ray per sensor, evenly spaced around the creature starting at
        its heading. Rays are cast in surface coordinates.
        """
        n  = len(self._inputs)
        ox = border + self.x
        oy = border + self.y
        for i in range(n):
            ray_angle = self.angle + 2.0 * math.pi * i / n
            self._inputs[i] = surface.distance_along_ray(ox, oy, ray_angle)
        return self._inputs

    def step(self, surface, border: float):
        """Execute one tick: sense → think → act."""
        turn, move = self.brain.step(self.sense(surface, border))
        self.angle += turn / TURN_DIVISOR
        self.x += math.cos(self.angle) * move * MOVE_SPEED
        self.y += math.sin(self.angle) * move * MOVE_SPEED
        if self.score < MAX_SCORE:
            self.score += 1


class Obstacle:
    """A moving line segment from (x, y) along `angle` for `length`."""
    __slots__ = ("x", "y", "angle", "dx", "dy", "length")

    def __init__(self, x: float, y: float, angle: float,
                 dx: float, dy: float, length: float):
        self.x      = float(x)
        self.y      = float(y)
        self.angle  = float(angle)
        self.dx     = float(dx)
        self.dy     = float(dy)
        self.length = float(length)

    @classmethod
    def random(cls, width: int, height: int, rng) -> "Obstacle":
        """Random obstacle somewhere inside a width x height arena."""
        dx = _nonzero_velocity(rng)
        dy = _nonzero_velocity(rng)
        return cls(
            x      = int(rng.integers(0, width)),
            y      = int(rng.integers(0, height)),
            angle  = rng.random() * 2 * math.pi,
            dx     = dx,
            dy     = dy,
            length = int(rng.integers(0, width)) / 3 + width / 6,
        )

    def advance(self):
        self.x += self.dx
        self.y += self.dy

    def end_point(self) -> tuple:
        return (self.x + math.cos(self.angle) * self.length,
                self.y + math.sin(self.angle) * self.length)

    def is_offscreen(self, frame_width: float, frame_height: float) -> bool:
        """True once the obstacle is a full length beyond any edge."""
        l = self.length
        return ((self.x - frame_width) >= l or -self.x >= l or
                (self.y - frame_height) >= l or -self.y >= l)


def _nonzero_velocity(rng) -> float:
    d = rng.random() * 2 - 1
    while d == 0:
        d = rng.random() * 2 - 1
    return d + math.copysign(OBSTACLE_MIN_SPEED, d)

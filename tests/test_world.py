import math

import numpy as np
import pytest

from config import NO_HIT_DISTANCE, BG_COLOR, SOLID_COLOR
from creature import Creature, Obstacle
from neural_network import NeuralNetwork
from world import OccupancySurface


@pytest.fixture
def surface():
    s = OccupancySurface(width=100, height=100, border_width=16)
    s.rebuild_border()
    return s


def test_surface_size(surface):
    assert surface.grid.shape == (132, 132)
    assert surface.frame.shape == (132, 132, 3)


def test_border_bands_and_clear_interior(surface):
    g = surface.grid
    assert g[:16, :].all()
    assert g[-16:, :].all()
    assert g[:, :16].all()
    assert g[:, -16:].all()
    assert not g[16:116, 16:116].any()


def test_rebuild_clears_old_obstacles(surface):
    surface.draw_segment(40, 40, 80, 80)
    assert surface.grid[16:116, 16:116].any()
    surface.rebuild_border()
    assert not surface.grid[16:116, 16:116].any()


def test_ray_hits_border(surface):
    assert surface.distance_along_ray(50.0, 50.0, math.pi) == pytest.approx(35.0)
    assert surface.distance_along_ray(50.0, 50.0, 0.0) == pytest.approx(66.0)


@pytest.mark.parametrize("x, y, angle", [
    (0.0, 0.0, 5 * math.pi / 4),
    (132.0, 132.0, math.pi / 4),
    (0.0, 131.0, math.pi),
])
def test_ray_leaving_bounds_returns_sentinel(surface, x, y, angle):
    d = surface.distance_along_ray(x, y, angle)
    assert d == NO_HIT_DISTANCE
    assert d > 0 and not math.isnan(d)


def test_ray_without_obstacles_or_border_misses():
    s = OccupancySurface(width=50, height=50, border_width=0)
    s.rebuild_border()
    assert s.distance_along_ray(25.0, 25.0, 1.0) == NO_HIT_DISTANCE


def test_obstacle_stroke_width(surface):
    surface.draw_segment(30.0, 60.5, 90.0, 60.5, line_width=3)
    column = surface.grid[:, 60]
    assert column[59] and column[60] and column[61]
    assert not column[58] and not column[62]


def test_creature_next_to_obstacle_senses_and_dies(surface):
    # horizontal obstacle from (50, 50) to (80, 50) in arena coordinates
    obstacle = Obstacle(x=50, y=50, angle=0.0, dx=1, dy=1, length=30)
    surface.draw_obstacle(obstacle)

    # one unit left of the stroke, facing along it
    creature = Creature(x=48, y=50, angle=0.0,
                        brain=NeuralNetwork(rng=np.random.default_rng(0)))
    inputs = creature.sense(surface, surface.border_width)
    assert inputs[0] == pytest.approx(1.0)
    assert surface.is_colliding(16 + creature.x, 16 + creature.y, 6)


def test_collision_in_open_space(surface):
    assert not surface.is_colliding(66.0, 66.0, 6)


def test_collision_with_border(surface):
    assert surface.is_colliding(20.0, 66.0, 6)
    assert surface.is_colliding(66.0, 112.0, 6)


def test_collision_off_surface_and_nan(surface):
    assert surface.is_colliding(-50.0, 66.0, 6)
    assert surface.is_colliding(float("nan"), 66.0, 6)


def test_render_frame_leaves_grid_alone(surface):
    creature = Creature(x=50, y=50, angle=0.0,
                        brain=NeuralNetwork(rng=np.random.default_rng(0)))
    before = surface.grid.copy()
    frame = surface.render_frame([creature])
    np.testing.assert_array_equal(surface.grid, before)

    assert tuple(frame[0, 0]) == SOLID_COLOR
    assert tuple(frame[30, 30]) == BG_COLOR
    # body pixel behind the forward marker
    assert tuple(frame[66, 62]) == tuple(creature.color)
    # marker sits 3 units ahead of the centre
    assert tuple(frame[66, 69]) == (255, 255, 255)

import logging

import numpy as np

from creature import Creature, Obstacle
from genome import random_weights
from neural_network import NeuralNetwork


def test_first_tick_from_empty(small_sim):
    sim = small_sim(min_creatures=10, num_obstacles=6)
    assert not sim.creatures and not sim.obstacles

    stats = sim.do_tick()
    assert len(sim.obstacles) == 6
    assert stats["spawned"] == 10
    assert stats["recycled"] == 0
    assert sim.spawned_fresh == 10
    assert sim.spawned_recycled == 0
    # whatever died on this tick went to the pool
    assert len(sim.creatures) + len(sim.creature_pool) == 10
    assert stats["population"] + stats["deaths"] == 10
    assert sim.tick_counter == 1


def test_population_floor_every_tick(small_sim):
    sim = small_sim(min_creatures=5, max_creatures=10, max_best_creatures=20)
    for _ in range(60):
        stats = sim.do_tick()
        # the floor is restored before the death pass of every tick
        assert stats["population"] + stats["deaths"] >= 5


def test_evolution_cycle_fills_to_ceiling(small_sim):
    sim = small_sim(min_creatures=2, max_creatures=4, max_best_creatures=8,
                    evolution_cycle_ticks=3)
    for _ in range(3):
        sim.do_tick()
    stats = sim.do_tick()     # tick counter 3: evolution cycle
    assert stats["population"] + stats["deaths"] == 4


def test_seeded_runs_are_identical(small_sim):
    runs = []
    for _ in range(2):
        sim = small_sim(seed=99, min_creatures=6, max_creatures=12,
                        max_best_creatures=24, evolution_cycle_ticks=10)
        sim.run(40)
        runs.append(sim)
    a, b = runs
    assert [(c.x, c.y, c.angle, c.score) for c in a.creatures] == \
           [(c.x, c.y, c.angle, c.score) for c in b.creatures]
    assert [(o.x, o.y, o.angle, o.length) for o in a.obstacles] == \
           [(o.x, o.y, o.angle, o.length) for o in b.obstacles]
    assert len(a.hall_of_fame) == len(b.hall_of_fame)
    for ea, eb in zip(a.hall_of_fame, b.hall_of_fame):
        assert ea.score == eb.score
        np.testing.assert_array_equal(ea.weights, eb.weights)


def test_hall_of_fame_stays_unique_and_bounded(small_sim):
    sim = small_sim(min_creatures=4, max_creatures=8, max_best_creatures=16,
                    evolution_cycle_ticks=5)
    sim.run(80)
    hof = sim.hall_of_fame
    assert len(hof) <= 16
    scores = [e.score for e in hof]
    assert scores == sorted(scores, reverse=True)
    for i in range(len(hof)):
        for j in range(i + 1, len(hof)):
            assert not np.array_equal(hof[i].weights, hof[j].weights)


def test_spawn_with_empty_hall_of_fame_is_random(small_sim):
    sim = small_sim()
    sim.spawn_creatures(5)
    assert len(sim.creatures) == 5
    assert len(sim.hall_of_fame) == 0
    weights = [c.weights() for c in sim.creatures]
    for i in range(5):
        for j in range(i + 1, 5):
            assert not np.array_equal(weights[i], weights[j])


def test_spawn_clones_from_hall_of_fame(small_sim):
    sim = small_sim()
    entries = [random_weights(rng=sim.rng) for _ in range(3)]
    for score, w in enumerate(entries):
        sim.hall_of_fame.fold(w, 10 - score)
    sim.hall_of_fame.rerank()

    sim.spawn_creatures(8)
    assert len(sim.creatures) == 8
    for k in range(4):
        expected = sim.hall_of_fame[k % 3].weights
        np.testing.assert_array_equal(sim.creatures[k].weights(), expected)
    # the crossover bound i < n // 4 is already passed, the rest is random
    for c in sim.creatures[4:]:
        assert sim.hall_of_fame.index_of(c.weights()) == -1


def test_spawn_single_creature_clones_best(small_sim):
    sim = small_sim()
    w = random_weights(rng=sim.rng)
    sim.hall_of_fame.fold(w, 5)
    sim.spawn_creatures(1)
    assert len(sim.creatures) == 1
    np.testing.assert_array_equal(sim.creatures[0].weights(), w)


def test_spawned_weights_are_copies(small_sim):
    sim = small_sim()
    w = random_weights(rng=sim.rng)
    sim.hall_of_fame.fold(w, 5)
    sim.spawn_creatures(1)
    sim.creatures[0].brain.randomize_weights(sim.rng)
    np.testing.assert_array_equal(sim.hall_of_fame[0].weights, w)


def test_placement_inside_arena(small_sim):
    sim = small_sim()
    for _ in range(50):
        c = sim.spawn_random_creature()
        assert 6 <= c.x < sim.width
        assert 6 <= c.y < sim.height
        assert 0 <= c.angle < 2 * np.pi
        assert c.score == 0


def test_dead_creature_is_recorded_and_recycled(small_sim):
    sim = small_sim(width=100, height=100)
    sim.surface.rebuild_border()
    sim.obstacles = [Obstacle(x=50, y=50, angle=0.0, dx=1, dy=1, length=30)]
    sim.surface.draw_obstacle(sim.obstacles[0])

    victim = Creature(x=48, y=50, angle=0.0,
                      brain=NeuralNetwork(rng=np.random.default_rng(5)))
    victim.score = 50
    survivor = Creature(x=20, y=80, angle=0.0,
                        brain=NeuralNetwork(rng=np.random.default_rng(6)))
    sim.creatures = [victim, survivor]

    sim._remove_dead()
    assert sim.creatures == [survivor]
    assert sim.creature_pool == [victim]
    assert len(sim.hall_of_fame) == 1
    assert sim.hall_of_fame[0].score == 50
    np.testing.assert_array_equal(sim.hall_of_fame[0].weights, victim.weights())

    # recycled in place, with a clean slate
    c = sim.spawn_random_creature()
    assert c is victim
    assert c.score == 0
    assert not c.brain.memory.any()
    assert sim.hall_of_fame.index_of(c.weights()) == -1
    assert not sim.creature_pool
    assert sim.spawned_recycled == 1


def test_recycled_and_fresh_spawns_match(small_sim):
    fresh = small_sim(seed=5)
    recycled = small_sim(seed=5)
    recycled.creature_pool = [
        Creature(x=1, y=1, angle=3.0, brain=NeuralNetwork(rng=np.random.default_rng(8)))
    ]
    recycled.creature_pool[0].score = 1234
    recycled.creature_pool[0].brain.step(np.ones(12))

    a = fresh.spawn_random_creature()
    b = recycled.spawn_random_creature()
    assert (a.x, a.y, a.angle, a.score, a.color) == (b.x, b.y, b.angle, b.score, b.color)
    np.testing.assert_array_equal(a.weights(), b.weights())
    inputs = np.arange(12, dtype=float)
    assert a.brain.step(inputs) == b.brain.step(inputs)


def test_offscreen_obstacles_are_replaced(small_sim, caplog):
    sim = small_sim(num_obstacles=2)
    sim.obstacles = [
        Obstacle(x=-500, y=50, angle=0.0, dx=1, dy=1, length=30),
        Obstacle(x=50, y=50, angle=0.0, dx=1, dy=1, length=30),
    ]
    kept = sim.obstacles[1]
    with caplog.at_level(logging.DEBUG, logger="simulation"):
        sim.do_tick()
    assert len(sim.obstacles) == 2
    assert sim.obstacles[0] is kept
    assert (kept.x, kept.y) == (51.0, 51.0)
    assert "spawning 1 obstacles" in caplog.text


def test_zero_obstacles_is_fine(small_sim):
    sim = small_sim(num_obstacles=0)
    sim.run(5)
    assert not sim.obstacles
    assert sim.creatures or sim.creature_pool


def test_frame_shows_creatures_but_sensing_does_not(small_sim):
    sim = small_sim()
    sim.do_tick()
    assert sim.frame.shape == (192, 192, 3)
    for c in sim.creatures:
        px, py = int(16 + c.x), int(16 + c.y)
        assert tuple(sim.frame[py, px]) != (0xF4, 0xF4, 0xF4)

    # the occupancy grid holds border + obstacles only
    grid_after_tick = sim.surface.grid.copy()
    sim.surface.rebuild_border()
    for o in sim.obstacles:
        sim.surface.draw_obstacle(o)
    np.testing.assert_array_equal(sim.surface.grid, grid_after_tick)


def test_tick_callback_receives_stats(small_sim):
    seen = []
    sim = small_sim(on_tick_callback=lambda tick, stats, s: seen.append((tick, stats["tick"])))
    sim.run(3)
    assert seen == [(1, 1), (2, 2), (3, 3)]
    assert len(sim.stats) == 3
    assert set(sim.stats[0]) >= {"population", "deaths", "hall_of_fame",
                                 "best_score", "diversity"}

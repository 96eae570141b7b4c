"""
Simulation Engine for the arena.

Orchestrates one tick at a time:
  1. Rebuild the occupancy surface (border, then moved obstacles)
  2. Evolution cycle / population floor spawning from the hall of fame
  3. Shuffle, remove creatures touching anything solid
  4. Sense → think → move every survivor
  5. Fold everyone into the hall of fame, re-rank, truncate
  6. Render the display frame and record stats

The engine does no I/O; it is driven by main.py (headless) or server.py.
"""

import logging
import math
import time
import numpy as np
from world import OccupancySurface
from creature import Creature, Obstacle
from hall_of_fame import HallOfFame
from neural_network import NeuralNetwork
from genome import crossover, weight_count, weight_similarity
from config import (
    ARENA_WIDTH, ARENA_HEIGHT, BORDER_WIDTH, CREATURE_RADIUS,
    MIN_CREATURES, MAX_CREATURES, NUM_OBSTACLES,
    MAX_BEST_CREATURES, EVOLUTION_CYCLE_TICKS, DIVERSITY_SAMPLE,
)

log = logging.getLogger(__name__)


class Simulation:
    """
    Main simulation controller. Owns every creature, obstacle, the recycle
    pool, the hall of fame and the occupancy surface.
    """

    def __init__(
        self,
        width:                 int = ARENA_WIDTH,
        height:                int = ARENA_HEIGHT,
        border_width:          int = BORDER_WIDTH,
        min_creatures:         int = MIN_CREATURES,
        max_creatures:         int = MAX_CREATURES,
        num_obstacles:         int = NUM_OBSTACLES,
        max_best_creatures:    int = MAX_BEST_CREATURES,
        evolution_cycle_ticks: int = EVOLUTION_CYCLE_TICKS,
        creature_radius:       int = CREATURE_RADIUS,
        seed:                  int = None,
        render:                bool = True,
        on_tick_callback       = None,    # called after every tick
    ):
        self.width                 = width
        self.height                = height
        self.border_width          = border_width
        self.min_creatures         = min_creatures
        self.max_creatures         = max_creatures
        self.num_obstacles         = num_obstacles
        self.evolution_cycle_ticks = evolution_cycle_ticks
        self.creature_radius       = creature_radius
        self.render                = render
        self.on_tick_callback      = on_tick_callback

        self.rng      = np.random.default_rng(seed)
        self.surface  = OccupancySurface(width, height, border_width)
        self.hall_of_fame = HallOfFame(capacity=max_best_creatures,
                                       keep=max_creatures)

        self.creatures     = []    # currently alive
        self.creature_pool = []    # dead creatures kept for recycling
        self.obstacles     = []

        # History
        self.tick_counter     = 0
        self.spawned_fresh    = 0
        self.spawned_recycled = 0
        self.stats            = []    # list of dicts, one per tick
        self._tick_deaths     = 0
        self._tick_spawned    = 0

    # ──────────────────────────────────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────────────────────────────────

    @property
    def frame(self) -> np.ndarray:
        """RGB display frame of border, obstacles and creatures."""
        return self.surface.frame

    def run(self, ticks: int):
        """Run `ticks` ticks back to back."""
        for _ in range(ticks):
            self.do_tick()

    def do_tick(self) -> dict:
        """Advance the simulation by one tick and return that tick's stats."""
        t0 = time.time()
        self._tick_deaths  = 0
        self._tick_spawned = 0
        recycled_before = self.spawned_recycled

        # border + cleared interior
        self.surface.rebuild_border()

        # move obstacles, drop the ones far off screen, respawn
        self._update_obstacles()
        for obstacle in self.obstacles:
            self.surface.draw_obstacle(obstacle)

        # evolution cycle
        if self.tick_counter > 0 and \
           self.tick_counter % self.evolution_cycle_ticks == 0:
            if len(self.creatures) < self.max_creatures:
                self.spawn_creatures(self.max_creatures - len(self.creatures))

        # population floor
        if len(self.creatures) < self.min_creatures:
            if self.creatures or self.tick_counter == 0:
                log.debug("population %d below floor %d",
                          len(self.creatures), self.min_creatures)
            else:
                log.info("extinction at tick %d, respawning %d creatures",
                         self.tick_counter, self.min_creatures)
            self.spawn_creatures(self.min_creatures - len(self.creatures))

        # randomize creature order
        self.creatures = [self.creatures[i]
                          for i in self.rng.permutation(len(self.creatures))]

        self._remove_dead()

        b = self.border_width
        for c in self.creatures:
            c.step(self.surface, b)

        # update top creatures
        hof = self.hall_of_fame
        for c in self.creatures:
            hof.fold(c.weights(), c.score)
        hof.rerank()
        hof.truncate()

        if self.render:
            self.surface.render_frame(self.creatures, self.creature_radius)

        self.tick_counter += 1
        stats = self._compute_stats(
            spawned  = self._tick_spawned,
            recycled = self.spawned_recycled - recycled_before,
        )
        stats["elapsed_s"] = round(time.time() - t0, 4)
        self.stats.append(stats)

        if self.on_tick_callback:
            self.on_tick_callback(self.tick_counter, stats, self)
        return stats

    # ──────────────────────────────────────────────────────────────────────────
    # Obstacles
    # ──────────────────────────────────────────────────────────────────────────

    def _update_obstacles(self):
        fw = float(self.surface.frame_width)
        fh = float(self.surface.frame_height)
        kept = []
        for obstacle in self.obstacles:
            obstacle.advance()
            if not obstacle.is_offscreen(fw, fh):
                kept.append(obstacle)
        self.obstacles = kept
        missing = self.num_obstacles - len(self.obstacles)
        if missing > 0:
            log.debug("tick %d: spawning %d obstacles", self.tick_counter, missing)
            self.spawn_obstacles(missing)

    def spawn_obstacles(self, n: int):
        """Add n new random obstacles."""
        for _ in range(n):
            self.obstacles.append(
                Obstacle.random(self.width, self.height, self.rng))

    # ──────────────────────────────────────────────────────────────────────────
    # Deaths
    # ──────────────────────────────────────────────────────────────────────────

    def _remove_dead(self):
        """
        Creatures touching the border or an obstacle die: their brain goes
        into the hall of fame and the creature into the recycle pool.
        """
        b = self.border_width
        alive = []
        for c in self.creatures:
            if self.surface.is_colliding(b + c.x, b + c.y, self.creature_radius):
                self.hall_of_fame.fold(c.weights(), c.score)
                self.creature_pool.append(c)
                self._tick_deaths += 1
            else:
                alive.append(c)
        self.creatures = alive

    # ──────────────────────────────────────────────────────────────────────────
    # Spawning
    # ──────────────────────────────────────────────────────────────────────────

    def _acquire(self) -> Creature:
        """Pop a pooled creature, or allocate one with a blank brain."""
        if self.creature_pool:
            self.spawned_recycled += 1
            return self.creature_pool.pop()
        self.spawned_fresh += 1
        brain = NeuralNetwork(weights=np.zeros(weight_count()))
        return Creature(brain=brain)

    def _place(self, c: Creature):
        r = self.creature_radius
        c.reset(
            x     = int(self.rng.integers(r, self.width)),
            y     = int(self.rng.integers(r, self.height)),
            angle = self.rng.random() * 2 * math.pi,
        )
        self.creatures.append(c)
        self._tick_spawned += 1
        return c

    def spawn_random_creature(self) -> Creature:
        """
        Add a creature with a fully random brain. Also the entry point for
        external "spawn now" triggers.
        """
        c = self._acquire()
        c.brain.randomize_weights(self.rng)
        return self._place(c)

    def spawn_creature_with_weights(self, weights) -> Creature:
        """Add a creature whose brain is a copy of `weights`."""
        c = self._acquire()
        c.brain.set_weights(weights)
        return self._place(c)

    def spawn_creatures(self, n: int):
        """
        Add n new creatures:
          1/2 copies of hall-of-fame brains,
          crossovers of consecutive hall-of-fame brains while i < n/4,
          random brains for the remainder.
        """
        if n <= 0:
            return
        i = 0
        hof = self.hall_of_fame
        n_best = len(hof)
        if n_best > 0:
            n_clones = max(1, n // 2)
            # spawn copies of hall of famers
            while i < n_clones:
                self.spawn_creature_with_weights(hof[i % n_best].weights)
                i += 1
            if i >= n:
                return
            # spawn mixed versions
            offset = 0
            while i < n // 4:
                weights = crossover(hof[offset % n_best].weights,
                                    hof[(offset + 1) % n_best].weights,
                                    self.rng)
                self.spawn_creature_with_weights(weights)
                offset += 1
                i += 1
        # random creatures for the remainder
        while i < n:
            self.spawn_random_creature()
            i += 1

    # ──────────────────────────────────────────────────────────────────────────
    # Stats
    # ──────────────────────────────────────────────────────────────────────────

    def snapshot(self) -> list:
        """Compact (x, y, angle, colour, score) records of the living."""
        return [
            {"x": c.x, "y": c.y, "angle": c.angle, "score": c.score,
             "r": int(c.color[0]), "g": int(c.color[1]), "b": int(c.color[2])}
            for c in self.creatures
        ]

    def _compute_stats(self, spawned: int, recycled: int) -> dict:
        scores = [c.score for c in self.creatures]
        return {
            "tick":         self.tick_counter,
            "population":   len(self.creatures),
            "pooled":       len(self.creature_pool),
            "obstacles":    len(self.obstacles),
            "deaths":       self._tick_deaths,
            "spawned":      spawned,
            "recycled":     recycled,
            "hall_of_fame": len(self.hall_of_fame),
            "best_score":   self.hall_of_fame.best_score,
            "mean_score":   float(np.mean(scores)) if scores else 0.0,
            "diversity":    self._weight_diversity(self.creatures),
        }

    def _weight_diversity(self, creatures: list,
                          sample: int = DIVERSITY_SAMPLE) -> float:
        """
        Estimate brain diversity as average pairwise dissimilarity.
        Returns value 0 (all clones) → 1 (maximally diverse).
        """
        if len(creatures) < 2:
            return 0.0
        sampled = creatures[:sample]
        total, count = 0.0, 0
        for i in range(len(sampled)):
            for j in range(i + 1, len(sampled)):
                sim = weight_similarity(sampled[i].weights(), sampled[j].weights())
                total += (1.0 - sim)
                count += 1
        return total / count if count else 0.0

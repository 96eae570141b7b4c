"""
Arena Evolution – Main Entry Point
==================================

Runs the simulation headlessly and writes frames, charts and a CSV log.

Usage examples:
  python main.py                          # default arena, 5000 ticks
  python main.py --ticks 20000 --seed 1   # longer, reproducible run
  python main.py --width 300 --height 300 --obstacles 10
  python main.py --min_creatures 20       # bigger population floor
  python main.py --log-level DEBUG        # engine debug logging
"""

import argparse
import logging

from simulation import Simulation
from visualizer import (ensure_dirs, save_frame_snapshot,
                        save_evolution_chart, append_csv)
from config import (SAVE_DIR, SNAPSHOT_INTERVAL, PRINT_INTERVAL,
                    ARENA_WIDTH, ARENA_HEIGHT, BORDER_WIDTH,
                    MIN_CREATURES, NUM_OBSTACLES, EVOLUTION_CYCLE_TICKS)


# ──────────────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Arena Evolution – creatures vs. moving obstacles")
    p.add_argument("--ticks",         type=int, default=5000,
                   help="Number of ticks to run")
    p.add_argument("--width",         type=int, default=ARENA_WIDTH,
                   help="Arena width")
    p.add_argument("--height",        type=int, default=ARENA_HEIGHT,
                   help="Arena height")
    p.add_argument("--border",        type=int, default=BORDER_WIDTH,
                   help="Border thickness around the arena")
    p.add_argument("--min_creatures", type=int, default=MIN_CREATURES,
                   help="Population floor (the spawn ceiling is twice this)")
    p.add_argument("--obstacles",     type=int, default=NUM_OBSTACLES,
                   help="Number of moving obstacles")
    p.add_argument("--cycle",         type=int, default=EVOLUTION_CYCLE_TICKS,
                   help="Ticks between evolution spawns")
    p.add_argument("--seed",          type=int, default=None,
                   help="Random seed for reproducibility")
    p.add_argument("--outdir",        default=SAVE_DIR,
                   help="Output directory")
    p.add_argument("--snapshot_interval", type=int, default=SNAPSHOT_INTERVAL,
                   help="Save a frame snapshot every N ticks (0 = never)")
    p.add_argument("--print_interval", type=int, default=PRINT_INTERVAL,
                   help="Print a stats line every N ticks")
    p.add_argument("--log-level",     default="WARNING",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   help="Logging level for the engine")
    return p.parse_args(argv)


# ──────────────────────────────────────────────────────────────────────────────
# Callbacks
# ──────────────────────────────────────────────────────────────────────────────

class SimCallbacks:
    """Bundles the per-tick callbacks used by the simulation."""

    def __init__(self, outdir: str, snapshot_interval: int,
                 print_interval: int):
        self.outdir            = outdir
        self.snapshot_interval = snapshot_interval
        self.print_interval    = print_interval

    def on_tick(self, tick, stats, sim):
        append_csv(stats, self.outdir)

        if tick % self.print_interval == 0 or tick <= 3:
            print_stats(stats)

        if self.snapshot_interval and tick % self.snapshot_interval == 0:
            path = save_frame_snapshot(sim, self.outdir)
            print(f"  → Snapshot: {path}")

        # Chart update every 10 snapshots
        if self.snapshot_interval and tick % (self.snapshot_interval * 10) == 0:
            save_evolution_chart(sim.stats, self.outdir)


def print_stats(stats: dict):
    print(
        f"Tick {stats['tick']:>7}  |  "
        f"alive {stats['population']:>3} (pool {stats['pooled']:>3})  |  "
        f"deaths {stats['deaths']:>2}  |  "
        f"best {stats['best_score']:>6}  mean {stats['mean_score']:>8.1f}  |  "
        f"hof {stats['hall_of_fame']:>3}  |  "
        f"diversity {stats['diversity']:.3f}"
    )


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────

def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    outdir = args.outdir
    ensure_dirs(outdir)

    print("=" * 60)
    print("  Arena Evolution – creatures vs. moving obstacles")
    print("=" * 60)
    print(f"  Arena      : {args.width} x {args.height} (border {args.border})")
    print(f"  Ticks      : {args.ticks}")
    print(f"  Population : {args.min_creatures}..{2 * args.min_creatures}")
    print(f"  Obstacles  : {args.obstacles}")
    print(f"  Cycle      : every {args.cycle} ticks")
    print(f"  Seed       : {args.seed}")
    print(f"  Output dir : {outdir}")
    print("=" * 60)

    cb = SimCallbacks(
        outdir            = outdir,
        snapshot_interval = args.snapshot_interval,
        print_interval    = max(1, args.print_interval),
    )

    sim = Simulation(
        width                 = args.width,
        height                = args.height,
        border_width          = args.border,
        min_creatures         = args.min_creatures,
        max_creatures         = 2 * args.min_creatures,
        max_best_creatures    = 4 * args.min_creatures,
        num_obstacles         = args.obstacles,
        evolution_cycle_ticks = args.cycle,
        seed                  = args.seed,
        render                = args.snapshot_interval > 0,
        on_tick_callback      = cb.on_tick,
    )

    sim.run(args.ticks)

    if sim.stats:
        print("\nSaving final evolution chart …")
        chart_path = save_evolution_chart(sim.stats, outdir, "evolution_final.png")
        print(f"  → {chart_path}")

    if args.snapshot_interval:
        snap = save_frame_snapshot(sim, outdir)
        print(f"  → Final snapshot: {snap}")

    print("\nDone! All outputs saved to:", outdir)
    return sim


if __name__ == "__main__":
    main()

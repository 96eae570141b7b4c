"""
Visualizer for the arena simulation.

Produces:
  1. Frame snapshots  – the rendered display frame (border, obstacles, creatures)
  2. Evolution chart  – population, deaths, best score + diversity over ticks
  3. CSV log          – per-tick stats
"""

import os
import csv
import matplotlib
matplotlib.use("Agg")          # non-interactive backend (no display needed)
import matplotlib.pyplot as plt

from config import SAVE_DIR, LOG_CSV


# ──────────────────────────────────────────────────────────────────────────────
# Directory setup
# ──────────────────────────────────────────────────────────────────────────────

def ensure_dirs(base: str = SAVE_DIR):
    for sub in ("snapshots", "charts"):
        os.makedirs(os.path.join(base, sub), exist_ok=True)


# ──────────────────────────────────────────────────────────────────────────────
# Frame snapshot
# ──────────────────────────────────────────────────────────────────────────────

def save_frame_png(frame, path):
    """Write an RGB uint8 frame to `path` (file name or binary file object)."""
    plt.imsave(path, frame, format="png")
    return path


def save_frame_snapshot(sim, base: str = SAVE_DIR) -> str:
    """Save the simulation's current display frame."""
    path = os.path.join(base, "snapshots", f"tick_{sim.tick_counter:08d}.png")
    return save_frame_png(sim.frame, path)


# ──────────────────────────────────────────────────────────────────────────────
# Evolution statistics chart
# ──────────────────────────────────────────────────────────────────────────────

def save_evolution_chart(stats: list, base: str = SAVE_DIR,
                         filename: str = "evolution.png"):
    """
    Plot population, deaths and best score on the left axis and brain
    diversity on the right axis across all recorded ticks.
    """
    if not stats:
        return
    ticks      = [s["tick"]       for s in stats]
    population = [s["population"] for s in stats]
    deaths     = [s["deaths"]     for s in stats]
    best       = [s["best_score"] for s in stats]
    diversity  = [s["diversity"]  for s in stats]

    fig, (ax1, ax3) = plt.subplots(2, 1, figsize=(12, 7), dpi=100, sharex=True)
    fig.patch.set_facecolor("#111111")
    for ax in (ax1, ax3):
        ax.set_facecolor("#111111")
        ax.tick_params(axis="both", colors="white")
        for spine in ax.spines.values():
            spine.set_edgecolor("#444444")

    # Population (green) and deaths (orange)
    ax1.plot(ticks, population, color="#44FF44", linewidth=1.2,
             label="Population", zorder=3)
    if any(d > 0 for d in deaths):
        ax1.plot(ticks, deaths, color="#FF8800", linewidth=0.8,
                 alpha=0.8, label="Deaths", zorder=2)
    ax1.set_ylabel("Count", color="white")
    ax1.set_ylim(0, max(population) * 1.1 if population else 1)

    ax2 = ax1.twinx()
    # Diversity (purple, right axis 0–1)
    ax2.plot(ticks, diversity, color="#CC44FF", linewidth=1.0,
             linestyle="--", label="Diversity", zorder=2)
    ax2.set_ylabel("Brain diversity (0–1)", color="white")
    ax2.set_ylim(0, 1.05)
    ax2.tick_params(colors="white")

    lines1, labels1 = ax1.get_legend_handles_labels()
    lines2, labels2 = ax2.get_legend_handles_labels()
    ax1.legend(lines1 + lines2, labels1 + labels2,
               facecolor="#222222", labelcolor="white",
               loc="upper right", fontsize=8)
    ax1.set_title("Evolutionary Progress", color="white", fontsize=12)

    # Hall-of-fame best score (ticks survived)
    ax3.plot(ticks, best, color="#44CCFF", linewidth=1.2)
    ax3.set_ylabel("Best score", color="white")
    ax3.set_xlabel("Tick", color="white")

    plt.tight_layout()
    path = os.path.join(base, "charts", filename)
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# CSV log
# ──────────────────────────────────────────────────────────────────────────────

def append_csv(stats: dict, base: str = SAVE_DIR):
    """Append one tick's stats to a CSV file."""
    if not LOG_CSV:
        return
    path = os.path.join(base, "evolution_log.csv")
    file_exists = os.path.isfile(path)
    with open(path, "a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(stats.keys()))
        if not file_exists:
            writer.writeheader()
        writer.writerow(stats)

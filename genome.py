"""
Weight-vector helpers for the arena simulation.

A creature's "genome" is the flat weight vector of its brain:

  [ input-layer block 0 | ... | input-layer block S+M-1 |
    output-layer block 0 | ... | output-layer block M+1 ]

 input-layer blocks  : S + M + 1 weights each (bias first)
 output-layer blocks : (S + M) + 1 weights each (bias first)

S = NUM_SENSOR_RAYS, M = MEMORY_SIZE. The layout is fixed; anything that
copies or splices weight vectors relies on these offsets.
"""

import numpy as np
from config import NUM_SENSOR_RAYS, MEMORY_SIZE

# ──────────────────────────────────────────────────────────────────────────────
# Layout
# ──────────────────────────────────────────────────────────────────────────────

def layer_shapes(n_sensors: int = NUM_SENSOR_RAYS,
                 memory_size: int = MEMORY_SIZE) -> tuple:
    """Return ((n_in, in_len), (n_out, out_len)) for the two layers."""
    n_in    = n_sensors + memory_size
    in_len  = n_sensors + memory_size + 1
    n_out   = memory_size + 2
    out_len = n_in + 1
    return (n_in, in_len), (n_out, out_len)


def weight_count(n_sensors: int = NUM_SENSOR_RAYS,
                 memory_size: int = MEMORY_SIZE) -> int:
    """Length of the canonical weight vector."""
    (n_in, in_len), (n_out, out_len) = layer_shapes(n_sensors, memory_size)
    return n_in * in_len + n_out * out_len


# ──────────────────────────────────────────────────────────────────────────────
# Population-level operations
# ──────────────────────────────────────────────────────────────────────────────

def random_weights(size: int = None, rng=None) -> np.ndarray:
    """Independent uniform weights in [-1, 1]."""
    if size is None:
        size = weight_count()
    if rng is None:
        rng = np.random.default_rng()
    return rng.random(size) * 2.0 - 1.0


def crossover(weights_a, weights_b, rng=None) -> np.ndarray:
    """
    Single-point crossover: pick a split in [0, len), take weights
    [0:split] from A and [split:] from B.
    """
    if rng is None:
        rng = np.random.default_rng()
    if len(weights_a) != len(weights_b):
        raise ValueError(
            f"weight vectors differ in length ({len(weights_a)} != {len(weights_b)})")
    size  = len(weights_a)
    split = int(rng.integers(0, size))
    child = np.empty(size, dtype=np.float64)
    child[:split] = weights_a[:split]
    child[split:] = weights_b[split:]
    return child


def weights_equal(weights_a, weights_b) -> bool:
    """Elementwise equality, the identity test for brains."""
    if len(weights_a) != len(weights_b):
        raise ValueError(
            f"weight vectors differ in length ({len(weights_a)} != {len(weights_b)})")
    return bool(np.array_equal(weights_a, weights_b))


def weight_similarity(weights_a, weights_b) -> float:
    """
    Similarity (0..1) from the mean absolute weight difference.
    Weights live in [-1, 1] so the largest possible difference is 2.
    """
    if len(weights_a) == 0 or len(weights_b) == 0:
        return 0.0
    diff = np.abs(np.asarray(weights_a) - np.asarray(weights_b))
    return float(max(0.0, 1.0 - diff.mean() / 2.0))


def _channel(avg: float) -> int:
    # 0xB3 keeps creatures away from pure white
    denom = avg * 2.0 + 0.5
    if denom == 0.0:
        return 0xFF
    value = 0xB3 / denom
    return int(min(255.0, max(0.0, value)))


def weights_to_color(weights) -> tuple:
    """
    Map a weight vector to an RGB colour so that clones share a colour.

    The vector is cut in thirds of len // 3; each third is averaged over
    len // 3 (the last third also takes the remainder). First third drives
    red, the middle one blue and the last one green.
    """
    n     = len(weights)
    third = n // 3
    if third == 0:
        return (128, 128, 128)
    w = np.asarray(weights, dtype=np.float64)
    red_avg   = float(w[:third].sum()) / third
    blue_avg  = float(w[third:2 * third].sum()) / third
    green_avg = float(w[2 * third:].sum()) / third
    return (_channel(red_avg), _channel(green_avg), _channel(blue_avg))

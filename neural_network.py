"""
Neural Network Brain for the arena simulation.

A fixed two-layer recurrent perceptron network:

  input layer  : S + M perceptrons  (sensor distances + memory + bias)
  output layer : M + 2 perceptrons  (turn, move, memory...)

Forward pass (per simulation tick):
  1. Build x = [1, sensors..., previous output[2:]...]
  2. Input layer  → tanh, prefixed with a bias slot of 1
  3. Output layer → tanh; output[0:2] is (turn, move), output[2:] is kept
     as memory for the next call
"""

import numpy as np
from genome import layer_shapes, random_weights, weights_to_color
from config import NUM_SENSOR_RAYS, MEMORY_SIZE


class NeuralNetwork:
    """
    Recurrent brain of a creature.

    Each row of the two layer matrices is one perceptron (bias weight first).
    Both matrices are views into one flat vector (see genome.py for the
    layout), so get_weights()/set_weights() move the whole brain at once.
    """

    def __init__(self, weights: np.ndarray = None, rng=None,
                 n_sensors: int = NUM_SENSOR_RAYS,
                 memory_size: int = MEMORY_SIZE):
        self.n_sensors   = n_sensors
        self.memory_size = memory_size
        (self.n_in, self.in_len), (self.n_out, self.out_len) = \
            layer_shapes(n_sensors, memory_size)
        self.n_weights = self.n_in * self.in_len + self.n_out * self.out_len

        # Preallocated input vector (bias + sensors + memory) and the
        # input layer output (bias + activations)
        self._x        = np.zeros(self.in_len, dtype=np.float64)
        self._in_out   = np.zeros(self.n_in + 1, dtype=np.float64)
        self._output   = np.zeros(self.n_out, dtype=np.float64)
        self._x[0]      = 1.0
        self._in_out[0] = 1.0

        if weights is None:
            weights = random_weights(self.n_weights, rng)
        self.set_weights(weights)

    # ──────────────────────────────────────────────────────────────────────────

    def _bind_layers(self):
        """Slice the flat weight vector into the two layer matrices."""
        split = self.n_in * self.in_len
        self._w_in  = self._weights[:split].reshape(self.n_in, self.in_len)
        self._w_out = self._weights[split:].reshape(self.n_out, self.out_len)

    def get_weights(self) -> np.ndarray:
        """
        The canonical weight vector (input layer blocks, then output layer
        blocks). This is the live backing array; copy it before keeping it.
        """
        return self._weights

    def set_weights(self, weights):
        """Copy `weights` in and re-bind both layers at the fixed offsets."""
        weights = np.array(weights, dtype=np.float64)
        if weights.ndim != 1 or weights.shape[0] != self.n_weights:
            raise ValueError(
                f"expected {self.n_weights} weights, got {weights.size}")
        self._weights = weights
        self._bind_layers()

    def randomize_weights(self, rng=None):
        """Replace every weight in place with a uniform value in [-1, 1]."""
        if rng is None:
            rng = np.random.default_rng()
        self._weights[:] = random_weights(self.n_weights, rng)

    def reset_memory(self):
        self._output[:] = 0.0

    # ──────────────────────────────────────────────────────────────────────────

    def step(self, sensor_inputs) -> tuple:
        """
        Run one forward pass and remember output[2:] for the next call.

        Args:
            sensor_inputs: sequence of NUM_SENSOR_RAYS distances

        Returns:
            (turn, move), both in [-1, 1]
        """
        if len(sensor_inputs) != self.n_sensors:
            raise ValueError(
                f"expected {self.n_sensors} sensor inputs, got {len(sensor_inputs)}")
        s = self.n_sensors
        self._x[1:1 + s] = sensor_inputs
        self._x[1 + s:]  = self._output[2:]

        np.tanh(self._w_in @ self._x, out=self._in_out[1:])
        np.tanh(self._w_out @ self._in_out, out=self._output)
        return float(self._output[0]), float(self._output[1])

    @property
    def memory(self) -> np.ndarray:
        return self._output[2:].copy()

    def color(self) -> tuple:
        """Display colour derived from the weights; clones look alike."""
        return weights_to_color(self._weights)

    def summary(self) -> str:
        w = self._weights
        return (f"NeuralNetwork ({self.n_in} in / {self.n_out} out, "
                f"{self.n_weights} weights, mean={w.mean():+.3f}, "
                f"std={w.std():.3f})")

"""
Densely-connected feedforward network trained by backpropagation.

Indexing (L = len(layers)):

  weights[i]: (layers[i+1], layers[i])     i = 0 .. L-2
  biases[i]:  (layers[i+1], 1)
  z[i]   = weights[i] @ a[i] + biases[i]   pre-activation, L-1 of them
  a[i+1] = f(z[i])                         a[0] is the input, L of them

Training keeps z and a in a ForwardCache that belongs to the caller, not
to the network, so inference never sees per-example scratch state.
Loss is squared error sum_k (a_k - y_k)^2.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import threading
import numpy as np

from mlpnet.core.activation import Activation, SIGMOID, get_activation
from mlpnet.core.errors import InputArityError, InvalidTopologyError, ShapeMismatchError
from mlpnet.core.matrix import DTYPE, Matrix

WINDOWING_MODES = ("disjoint", "sliding")


@dataclass
class ForwardCache:
    """History of one recording pass, consumed by the following backprop."""
    preactivations: List[Matrix] = field(default_factory=list)  # z[0..L-2]
    activations: List[Matrix] = field(default_factory=list)     # a[0..L-1]

    def clear(self) -> None:
        self.preactivations.clear()
        self.activations.clear()


def squared_error(predicted, expected) -> float:
    diff = np.asarray(predicted, dtype=DTYPE) - np.asarray(expected, dtype=DTYPE)
    return float(np.sum(diff * diff))


def round_half_away(values) -> np.ndarray:
    values = np.asarray(values, dtype=DTYPE)
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def mini_batches(pairs: Sequence, size: int, windowing: str = "disjoint") -> List[Sequence]:
    """
    Split (already shuffled) pairs into mini-batches.

    disjoint: consecutive partitions, every pair used once, last batch may be short
    sliding:  every window pairs[i:i+size], so most pairs appear in several batches
    """
    if size < 1:
        raise ValueError(f"mini_batch_size must be >= 1, got {size}")
    if windowing == "disjoint":
        return [pairs[i:i + size] for i in range(0, len(pairs), size)]
    if windowing == "sliding":
        if size > len(pairs):
            raise ValueError(f"sliding windows of size {size} need at least {size} examples, got {len(pairs)}")
        return [pairs[i:i + size] for i in range(len(pairs) - size + 1)]
    raise ValueError(f"windowing must be one of {WINDOWING_MODES}, got {windowing!r}")


class Network:
    """
    Multi-layer perceptron with a fixed topology.

    Weights and biases are replaced as a pair under a lock by update_network(),
    and inference reads the pair under the same lock, so a concurrent
    feed_forward() sees either the old or the new parameters, never a mix.
    """

    def __init__(
        self,
        layers: Sequence[int],
        activation=SIGMOID,
        learning_rate: float = 0.1,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        weights: Optional[Sequence[Matrix]] = None,
        biases: Optional[Sequence[Matrix]] = None,
    ):
        layers = [int(n) for n in layers]
        if len(layers) < 2:
            raise InvalidTopologyError(
                f"A network needs at least an input and an output layer, got layers={layers}")
        if any(n < 1 for n in layers):
            raise InvalidTopologyError(f"Every layer needs at least one neuron, got layers={layers}")
        if not learning_rate > 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")

        self.layers = layers
        self.activation: Activation = get_activation(activation)
        self.learning_rate = float(learning_rate)
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._lock = threading.RLock()

        if weights is None and biases is None:
            weights = [Matrix.random(layers[i + 1], layers[i], self._rng) for i in range(len(layers) - 1)]
            biases = [Matrix.random(layers[i + 1], 1, self._rng) for i in range(len(layers) - 1)]
        elif weights is None or biases is None:
            raise ValueError("weights and biases must be given together")
        self.weights, self.biases = self._check_parameters(weights, biases)

    # ----- parameters -----
    def _check_parameters(self, weights, biases) -> Tuple[List[Matrix], List[Matrix]]:
        weights = [w if isinstance(w, Matrix) else Matrix(w) for w in weights]
        biases = [b if isinstance(b, Matrix) else Matrix(b) for b in biases]
        n = len(self.layers) - 1
        if len(weights) != n or len(biases) != n:
            raise ValueError(
                f"Expected {n} weight and bias matrices, got {len(weights)} and {len(biases)}")
        for i in range(n):
            expected_w = (self.layers[i + 1], self.layers[i])
            expected_b = (self.layers[i + 1], 1)
            if weights[i].shape != expected_w:
                raise ShapeMismatchError(f"use layer {i} weight", weights[i].shape, expected_w)
            if biases[i].shape != expected_b:
                raise ShapeMismatchError(f"use layer {i} bias", biases[i].shape, expected_b)
        return weights, biases

    def parameters(self) -> Tuple[List[Matrix], List[Matrix]]:
        with self._lock:
            return self.weights, self.biases

    def snapshot(self) -> "Network":
        """Independent copy for inference while this network keeps training."""
        weights, biases = self.parameters()
        return Network(
            self.layers, self.activation, self.learning_rate,
            weights=[w.copy() for w in weights],
            biases=[b.copy() for b in biases],
        )

    @property
    def num_parameters(self) -> int:
        return sum(self.layers[i + 1] * (self.layers[i] + 1) for i in range(len(self.layers) - 1))

    # ----- helpers -----
    @staticmethod
    def _column(values, length: int, what: str) -> Matrix:
        arr = np.asarray(values, dtype=DTYPE).reshape(-1)
        if arr.shape[0] != length:
            raise InputArityError(what, length, arr.shape[0])
        return Matrix.from_list(arr).transpose()

    def _expected_vector(self, values) -> np.ndarray:
        return self._column(values, self.layers[-1], "expected outputs").data.reshape(-1)

    @staticmethod
    def _pairs(inputs, expected_outputs) -> List[Tuple]:
        inputs, expected_outputs = list(inputs), list(expected_outputs)
        if len(inputs) != len(expected_outputs):
            raise ValueError(
                f"Got {len(inputs)} inputs but {len(expected_outputs)} expected outputs")
        return list(zip(inputs, expected_outputs))

    # ----- inference -----
    def feed_forward(self, inputs) -> np.ndarray:
        weights, biases = self.parameters()
        activation = self._column(inputs, self.layers[0], "inputs")
        for w, b in zip(weights, biases):
            activation = (w @ activation + b).map(self.activation.forward, vectorized=True)
        return activation.transpose().row(0).copy()

    def feed_forward_and_record(self, inputs, cache: ForwardCache) -> np.ndarray:
        """feed_forward() that also fills `cache` (cleared first) for back_propagate()."""
        cache.clear()
        weights, biases = self.parameters()
        current = self._column(inputs, self.layers[0], "inputs")
        cache.activations.append(current)

        for w, b in zip(weights, biases):
            z = w @ current + b
            cache.preactivations.append(z)
            current = z.map(self.activation.forward, vectorized=True)
            cache.activations.append(current)

        return current.transpose().row(0).copy()

    # ----- backpropagation -----
    def back_propagate(self, predicted, expected, cache: ForwardCache) -> Tuple[List[Matrix], List[Matrix]]:
        """
        Gradients of the squared error for the example recorded in `cache`.

          delta[L-2] = 2 (a - y) * f'(z[L-2])
          delta[l]   = (W[l+1]^T delta[l+1]) * f'(z[l])
          dW[l] = delta[l] a[l]^T,  db[l] = delta[l]

        Returns:
          (weight_gradients, bias_gradients), ordered like weights and biases
        """
        L = len(self.layers)
        expected_m = self._column(expected, self.layers[-1], "expected outputs")
        predicted_m = self._column(predicted, self.layers[-1], "outputs")
        if len(cache.preactivations) != L - 1 or len(cache.activations) != L:
            raise ValueError(
                f"Cache holds {len(cache.preactivations)} pre-activations and {len(cache.activations)} "
                f"activations, expected {L - 1} and {L}; call feed_forward_and_record() first")

        weights, _ = self.parameters()
        derivative = self.activation.derivative
        nabla_w: List[Optional[Matrix]] = [None] * (L - 1)
        nabla_b: List[Optional[Matrix]] = [None] * (L - 1)

        error = (predicted_m - expected_m).scalar_multiply(2.0).elementwise_multiply(
            cache.preactivations[-1].map(derivative, vectorized=True))

        last = L - 2
        nabla_w[last] = error @ cache.activations[last].transpose()
        nabla_b[last] = error

        for l in range(last - 1, -1, -1):
            error = (weights[l + 1].transpose() @ error).elementwise_multiply(
                cache.preactivations[l].map(derivative, vectorized=True))
            nabla_w[l] = error @ cache.activations[l].transpose()
            nabla_b[l] = error

        return nabla_w, nabla_b

    def update_network(self, weight_gradients: Sequence[Matrix], bias_gradients: Sequence[Matrix],
                       scale: float = 1.0) -> None:
        """W[i] -= lr * scale * dW[i]; b[i] -= lr * scale * db[i]."""
        n = len(self.layers) - 1
        if len(weight_gradients) != n or len(bias_gradients) != n:
            raise ValueError(
                f"Expected {n} weight and bias gradients, got {len(weight_gradients)} and {len(bias_gradients)}")
        step = self.learning_rate * scale
        with self._lock:
            new_weights = [w - g * step for w, g in zip(self.weights, weight_gradients)]
            new_biases = [b - g * step for b, g in zip(self.biases, bias_gradients)]
            self.weights, self.biases = new_weights, new_biases

    # ----- training -----
    def train_step(self, inputs, expected, cache: Optional[ForwardCache] = None) -> float:
        """One online gradient step on one example; returns its loss before the update."""
        cache = cache if cache is not None else ForwardCache()
        outputs = self.feed_forward_and_record(inputs, cache)
        nabla_w, nabla_b = self.back_propagate(outputs, expected, cache)
        self.update_network(nabla_w, nabla_b)
        return squared_error(outputs, expected)

    def train_epoch(self, inputs, expected_outputs) -> float:
        """One pass in original order, one update per example. Returns mean loss."""
        pairs = self._pairs(inputs, expected_outputs)
        cache = ForwardCache()
        total = 0.0
        for x, y in pairs:
            total += self.train_step(x, y, cache)
        return total / len(pairs) if pairs else 0.0

    def train(self, inputs, expected_outputs, epochs: int, verbose: bool = False) -> List[float]:
        """
        Online gradient descent: every example gets its own update, in order.

        Returns:
          mean squared error per epoch
        """
        if epochs < 0:
            raise ValueError(f"epochs must be >= 0, got {epochs}")
        inputs, expected_outputs = list(inputs), list(expected_outputs)
        history = []
        for i in range(1, epochs + 1):
            if verbose and (epochs < 100 or i % 100 == 0):
                print(f"Epoch {i} of {epochs}")
            history.append(self.train_epoch(inputs, expected_outputs))
        return history

    def stochastic_train_epoch(self, inputs, expected_outputs, mini_batch_size: int,
                               windowing: str = "disjoint",
                               rng: Optional[np.random.Generator] = None) -> float:
        """
        Shuffle, split into mini-batches, and apply one averaged update per batch.
        The batch's gradients are all summed before its update is applied.
        """
        pairs = self._pairs(inputs, expected_outputs)
        rng = rng if rng is not None else self._rng
        order = rng.permutation(len(pairs))
        batches = mini_batches([pairs[k] for k in order], mini_batch_size, windowing)

        cache = ForwardCache()
        total, seen = 0.0, 0
        for batch in batches:
            weights, biases = self.parameters()
            sum_w = [Matrix.zeros(*w.shape) for w in weights]
            sum_b = [Matrix.zeros(*b.shape) for b in biases]

            for x, y in batch:
                outputs = self.feed_forward_and_record(x, cache)
                total += squared_error(outputs, y)
                seen += 1
                nabla_w, nabla_b = self.back_propagate(outputs, y, cache)
                sum_w = [s + g for s, g in zip(sum_w, nabla_w)]
                sum_b = [s + g for s, g in zip(sum_b, nabla_b)]

            self.update_network(sum_w, sum_b, scale=1.0 / len(batch))

        return total / seen if seen else 0.0

    def stochastic_train(self, inputs, expected_outputs, epochs: int, mini_batch_size: int,
                         windowing: str = "disjoint", rng: Optional[np.random.Generator] = None,
                         verbose: bool = False) -> List[float]:
        """
        Mini-batch stochastic gradient descent.

        windowing="disjoint" visits every example once per epoch;
        windowing="sliding" uses overlapping windows over the shuffled list.

        Returns:
          mean squared error per epoch
        """
        if epochs < 0:
            raise ValueError(f"epochs must be >= 0, got {epochs}")
        if mini_batch_size < 1:
            raise ValueError(f"mini_batch_size must be >= 1, got {mini_batch_size}")
        inputs, expected_outputs = list(inputs), list(expected_outputs)
        history = []
        for i in range(1, epochs + 1):
            if verbose and (epochs < 100 or i % 100 == 0):
                print(f"Epoch {i} of {epochs}")
            history.append(self.stochastic_train_epoch(
                inputs, expected_outputs, mini_batch_size, windowing, rng))
        return history

    # ----- evaluation -----
    def test(self, inputs, expected_outputs) -> int:
        """Number of examples whose rounded outputs equal the expected vector exactly."""
        passes = 0
        for x, y in self._pairs(inputs, expected_outputs):
            expected = self._expected_vector(y)
            if np.array_equal(round_half_away(self.feed_forward(x)), expected):
                passes += 1
        return passes

    def evaluate_argmax(self, inputs, expected_outputs) -> int:
        """Number of examples whose largest output is at the expected class index."""
        passes = 0
        for x, y in self._pairs(inputs, expected_outputs):
            expected = self._expected_vector(y)
            if int(np.argmax(self.feed_forward(x))) == int(np.argmax(expected)):
                passes += 1
        return passes

    def loss(self, inputs, expected_outputs) -> float:
        pairs = self._pairs(inputs, expected_outputs)
        if not pairs:
            return 0.0
        return sum(squared_error(self.feed_forward(x), self._expected_vector(y)) for x, y in pairs) / len(pairs)

    def __repr__(self) -> str:
        return (f"Network(layers={self.layers}, activation={self.activation.name!r}, "
                f"learning_rate={self.learning_rate})")

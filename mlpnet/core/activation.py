"""
Activation functions as tagged variants.

Each variant carries a forward function and its derivative, both evaluated on
the pre-activation z (so sigmoid'(z) = sigmoid(z) * (1 - sigmoid(z)), not
y * (1 - y) on the output). Both functions are numpy-vectorized and act
entrywise, so they work on scalars and on whole buffers alike.

A network stores only the variant's name when it is saved; get_activation()
resolves the name back to the variant on load.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict
import numpy as np


@dataclass(frozen=True)
class Activation:
    name: str
    forward: Callable = field(compare=False)
    derivative: Callable = field(compare=False)


def _sigmoid(x):
    return 1.0 / (1.0 + np.exp(-x))


def _sigmoid_derivative(x):
    s = _sigmoid(x)
    return s * (1.0 - s)


def _relu(x):
    return np.maximum(0.0, x)


def _relu_derivative(x):
    # value at exactly 0 is a don't-care; 0 is used
    return np.where(np.asarray(x) > 0, 1.0, 0.0)


def _tanh(x):
    return np.tanh(x)


def _tanh_derivative(x):
    y = np.tanh(x)
    return 1.0 - y * y


SIGMOID = Activation("sigmoid", _sigmoid, _sigmoid_derivative)
RELU = Activation("relu", _relu, _relu_derivative)
TANH = Activation("tanh", _tanh, _tanh_derivative)

ACTIVATIONS: Dict[str, Activation] = {a.name: a for a in (SIGMOID, RELU, TANH)}


def get_activation(name) -> Activation:
    """Resolve an activation by name; Activation instances pass through."""
    if isinstance(name, Activation):
        return name
    key = str(name).lower()
    if key not in ACTIVATIONS:
        raise ValueError(f"Unknown activation: {name}. Use one of {sorted(ACTIVATIONS)}")
    return ACTIVATIONS[key]

#!/usr/bin/env python
"""Test checkpoint save/load round trips."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import tempfile
import numpy as np
import torch

from mlpnet.core.activation import RELU, SIGMOID
from mlpnet.core.network import Network
from mlpnet.data.datasets import xor_dataset
from mlpnet.utils.checkpointing import load_checkpoint, save_checkpoint


def test_round_trip():
    """Test a trained network reloads bit-for-bit."""
    print("=" * 80)
    print("Testing Checkpoint Round Trip")
    print("=" * 80)

    X, Y = xor_dataset()
    network = Network([2, 3, 1], SIGMOID, 1.0, seed=3)
    network.train(X, Y, epochs=200)

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, 'nested', 'model.pt')
        save_checkpoint(network, path, epoch=200, loss=0.1)
        loaded, epoch, loss = load_checkpoint(path)

        assert epoch == 200 and loss == 0.1
        assert loaded.layers == network.layers
        assert loaded.activation is SIGMOID
        assert loaded.learning_rate == network.learning_rate
        for a, b in zip(network.weights + network.biases, loaded.weights + loaded.biases):
            assert a.data.dtype == b.data.dtype == np.float64
            assert a.data.tobytes() == b.data.tobytes()
        print("✓ Topology, activation tag, learning rate and parameters identical")

        for x in X:
            assert np.array_equal(network.feed_forward(x), loaded.feed_forward(x))
        print("✓ feed_forward outputs identical")

        # load -> save -> load
        path2 = os.path.join(tmp, 'model2.pt')
        save_checkpoint(loaded, path2)
        reloaded, epoch2, _ = load_checkpoint(path2)
        assert epoch2 is None
        for a, b in zip(loaded.weights + loaded.biases, reloaded.weights + reloaded.biases):
            assert a.data.tobytes() == b.data.tobytes()
        print("✓ Second round trip identical")

    print()


def test_checkpoint_contents():
    """Test only permanent model state is stored."""
    print("=" * 80)
    print("Testing Checkpoint Contents")
    print("=" * 80)

    network = Network([4, 2, 3], RELU, 0.05, seed=1)
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, 'model.pt')
        save_checkpoint(network, path)
        raw = torch.load(path, weights_only=True)

    assert set(raw) == {'layers', 'activation', 'learning_rate', 'weights', 'biases', 'epoch', 'loss'}
    assert raw['activation'] == 'relu'
    assert [tuple(t.shape) for t in raw['weights']] == [(2, 4), (3, 2)]
    assert [tuple(t.shape) for t in raw['biases']] == [(2, 1), (3, 1)]
    print(f"✓ Keys: {sorted(raw)}")
    print()


if __name__ == "__main__":
    test_round_trip()
    test_checkpoint_contents()
    print("✅ Checkpoint tests passed!")

#!/usr/bin/env python
"""
Evaluate a saved network.

Usage:
    python scripts/evaluate.py --checkpoint checkpoints/best_model.pt --dataset xor
    python scripts/evaluate.py --checkpoint checkpoints/final_model.pt --dataset mnist --limit 1000
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

import argparse
import numpy as np

from mlpnet.config.network_config import MNISTConfig
from mlpnet.data.datasets import load_mnist, xor_dataset
from mlpnet.utils.checkpointing import load_checkpoint


def main():
    parser = argparse.ArgumentParser(description='Evaluate a saved network')
    parser.add_argument('--checkpoint', type=str, required=True, help='Path to checkpoint')
    parser.add_argument('--dataset', choices=['xor', 'mnist'], default='xor')
    parser.add_argument('--data-dir', type=str, default=MNISTConfig.data_dir)
    parser.add_argument('--limit', type=int, default=None, help='Evaluate on the first N test examples')
    parser.add_argument('--scoring', choices=['round', 'argmax'], default=None,
                        help='Defaults to round for xor and argmax for mnist')
    args = parser.parse_args()

    network, epoch, loss = load_checkpoint(args.checkpoint)
    print(f"Network: {network}")
    if epoch is not None:
        print(f"Checkpoint from epoch {epoch}" + (f" (loss {loss:.6f})" if loss is not None else ""))

    if args.dataset == 'xor':
        inputs, expected = xor_dataset()
    else:
        inputs, expected = load_mnist(args.data_dir, 'test', args.limit)

    scoring = args.scoring or ('round' if args.dataset == 'xor' else 'argmax')
    if scoring == 'argmax':
        score = network.evaluate_argmax(inputs, expected)
    else:
        score = network.test(inputs, expected)

    print(f"Loss:  {network.loss(inputs, expected):.6f}")
    print(f"Score: {score}/{len(inputs)} ({100.0 * score / len(inputs):.2f}%)")

    if args.dataset == 'xor':
        print("\nPredictions:")
        for x, y in zip(inputs, expected):
            print(f"  {x.tolist()} -> {np.round(network.feed_forward(x), 4).tolist()} (expected {y.tolist()})")


if __name__ == "__main__":
    main()

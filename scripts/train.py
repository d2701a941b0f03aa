#!/usr/bin/env python
"""
Training script for feedforward networks.

Usage:
    python scripts/train.py --dataset xor
    python scripts/train.py --dataset mnist --epochs 10 --mini-batch-size 10
    python scripts/train.py --dataset mnist --resume checkpoints/checkpoint_epoch_5.pt
    python scripts/train.py --config my_config.py --plot
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

import argparse
import importlib.util

from mlpnet.config.network_config import MNISTConfig, XORConfig
from mlpnet.core.backends import get_backend, set_backend_from_config
from mlpnet.core.network import Network
from mlpnet.data.datasets import load_mnist, xor_dataset
from mlpnet.training.trainer import Trainer
from mlpnet.utils.checkpointing import load_checkpoint, save_checkpoint
from mlpnet.utils.visualization import plot_training_history

CONFIGS = {'xor': XORConfig, 'mnist': MNISTConfig}


def load_config(args):
    """Build the config from --config (a file defining Config) or --dataset."""
    if args.config:
        spec = importlib.util.spec_from_file_location("config", args.config)
        config_module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(config_module)
        config = config_module.Config()
    else:
        config = CONFIGS[args.dataset]()

    # Command-line overrides
    if args.epochs is not None:
        config.epochs = args.epochs
    if args.learning_rate is not None:
        config.learning_rate = args.learning_rate
    if args.mini_batch_size is not None:
        config.mini_batch_size = args.mini_batch_size if args.mini_batch_size > 0 else None
    if args.windowing is not None:
        config.windowing = args.windowing
    if args.backend is not None:
        config.multiply_backend = args.backend
    return config


def load_data(dataset, config):
    if dataset == 'xor':
        data = xor_dataset()
        return data, data
    train = load_mnist(config.data_dir, 'train', getattr(config, 'train_limit', None))
    test = load_mnist(config.data_dir, 'test', getattr(config, 'test_limit', None))
    return train, test


def main():
    """Main training function."""
    parser = argparse.ArgumentParser(description='Train a feedforward network')
    parser.add_argument('--dataset', choices=sorted(CONFIGS), default='xor', help='Dataset to train on')
    parser.add_argument('--config', type=str, default=None, help='Path to custom config')
    parser.add_argument('--resume', type=str, default=None, help='Resume from checkpoint; epochs continue from the saved epoch')
    parser.add_argument('--epochs', type=int, default=None, help='Override number of epochs (additional epochs when resuming)')
    parser.add_argument('--learning-rate', type=float, default=None, help='Override learning rate')
    parser.add_argument('--mini-batch-size', type=int, default=None,
                        help='Override mini-batch size (0 for online training)')
    parser.add_argument('--windowing', choices=['disjoint', 'sliding'], default=None,
                        help='Mini-batch construction')
    parser.add_argument('--backend', choices=['numpy', 'threaded', 'torch'], default=None,
                        help='Matrix multiplication backend')
    parser.add_argument('--plot', action='store_true', help='Save training curves')
    args = parser.parse_args()

    print("=" * 60)
    print("Feedforward Network Training")
    print("=" * 60)
    print()

    config = load_config(args)
    set_backend_from_config(config)
    print(f"Config: layers={config.layers}, activation={config.activation}, lr={config.learning_rate}")
    print(f"Epochs: {config.epochs}, Mini-batch size: {config.mini_batch_size}, Backend: {get_backend().name}")
    print()

    print("Loading data...")
    try:
        train_data, eval_data = load_data(args.dataset, config)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        print("Download the four MNIST IDX files into the data directory first.")
        return
    print(f"Train size: {len(train_data[0])}")
    print(f"Eval size: {len(eval_data[0])}")
    print()

    start_epoch = 0
    if args.resume:
        network, start_epoch, _ = load_checkpoint(args.resume)
        network.learning_rate = config.learning_rate
        start_epoch = start_epoch or 0
        print(f"Resuming from epoch {start_epoch}")
    else:
        network = Network(config.layers, config.activation, config.learning_rate, seed=config.seed)
    print(f"Network: {network} ({network.num_parameters} parameters)")

    trainer = Trainer(network, config, train_data, eval_data, start_epoch=start_epoch)
    history = trainer.train()

    final_path = os.path.join(config.checkpoint_dir, 'final_model.pt')
    save_checkpoint(network, final_path, epoch=trainer.current_epoch, loss=history['train_loss'][-1] if history['train_loss'] else None)

    if history['eval_score']:
        print(f"Score: {history['eval_score'][-1]}/{len(eval_data[0])}")

    if args.plot:
        plot_training_history(history, os.path.join(config.output_dir, 'training_history.png'),
                              title=f"{args.dataset} {config.layers}")

    get_backend().close()


if __name__ == "__main__":
    main()

"""Network checkpointing utilities."""

import torch
import os

from mlpnet.core.matrix import Matrix
from mlpnet.core.network import Network


def save_checkpoint(network, path, epoch=None, loss=None):
    """
    Save network checkpoint.

    Only the permanent model state is written: topology, weights, biases,
    activation name and learning rate. Training history is never saved.

    Args:
        network: Network to save
        path: Path to save checkpoint
        epoch: Current epoch (optional)
        loss: Current loss (optional)
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    weights, biases = network.parameters()
    checkpoint = {
        'layers': list(network.layers),
        'activation': network.activation.name,
        'learning_rate': network.learning_rate,
        'weights': [torch.from_numpy(w.data.copy()) for w in weights],
        'biases': [torch.from_numpy(b.data.copy()) for b in biases],
        'epoch': epoch,
        'loss': loss,
    }

    torch.save(checkpoint, path)
    print(f"Checkpoint saved to {path}")


def load_checkpoint(path, device='cpu'):
    """
    Load network checkpoint.

    Args:
        path: Path to checkpoint
        device: Device to map tensors to while loading

    Returns:
        network: Network rebuilt from the checkpoint
        epoch: Epoch number from checkpoint (None if not recorded)
        loss: Loss from checkpoint (None if not recorded)
    """
    checkpoint = torch.load(path, map_location=device, weights_only=True)

    network = Network(
        checkpoint['layers'],
        activation=checkpoint['activation'],
        learning_rate=checkpoint['learning_rate'],
        weights=[Matrix(t.cpu().numpy()) for t in checkpoint['weights']],
        biases=[Matrix(t.cpu().numpy()) for t in checkpoint['biases']],
    )

    epoch = checkpoint.get('epoch')
    loss = checkpoint.get('loss')

    print(f"Checkpoint loaded from {path} (epoch {epoch})")
    return network, epoch, loss

"""
Training data as (inputs, expected_outputs) pairs of float64 arrays.

  inputs:           (N, n_in)
  expected_outputs: (N, n_out)

MNIST is read from the IDX files (optionally gzipped):
  images: magic 0x00000803, count, rows, cols, then count*rows*cols bytes
  labels: magic 0x00000801, count, then count bytes
All header fields are big-endian uint32.
"""
from __future__ import annotations
from typing import Optional, Tuple
import gzip
import os
import numpy as np

IMAGES_MAGIC = 0x00000803
LABELS_MAGIC = 0x00000801

MNIST_FILES = {
    "train": ("train-images-idx3-ubyte", "train-labels-idx1-ubyte"),
    "test": ("t10k-images-idx3-ubyte", "t10k-labels-idx1-ubyte"),
}


def xor_dataset() -> Tuple[np.ndarray, np.ndarray]:
    X = np.array([[0, 0], [0, 1], [1, 0], [1, 1]], dtype=np.float64)
    Y = np.array([[0], [1], [1], [0]], dtype=np.float64)
    return X, Y


def one_hot(labels, num_classes: int) -> np.ndarray:
    labels = np.asarray(labels, dtype=np.int64).reshape(-1)
    if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
        raise ValueError(f"labels must lie in [0, {num_classes}), got range "
                         f"[{labels.min()}, {labels.max()}]")
    out = np.zeros((labels.shape[0], num_classes), dtype=np.float64)
    out[np.arange(labels.shape[0]), labels] = 1.0
    return out


def _read_bytes(path: str) -> bytes:
    opener = gzip.open if path.endswith(".gz") else open
    with opener(path, "rb") as f:
        return f.read()


def _header(raw: bytes, fields: int, path: str) -> Tuple[int, ...]:
    if len(raw) < 4 * fields:
        raise ValueError(f"{path}: truncated IDX header")
    return tuple(int(v) for v in np.frombuffer(raw, dtype=">u4", count=fields))


def load_idx_images(path: str, limit: Optional[int] = None) -> np.ndarray:
    """Returns uint8 array (N, rows*cols)."""
    raw = _read_bytes(path)
    magic, count, rows, cols = _header(raw, 4, path)
    if magic != IMAGES_MAGIC:
        raise ValueError(f"{path}: bad image magic number {magic:#010x}, expected {IMAGES_MAGIC:#010x}")
    if limit is not None:
        count = min(count, limit)
    pixels = np.frombuffer(raw, dtype=np.uint8, count=count * rows * cols, offset=16)
    return pixels.reshape(count, rows * cols)


def load_idx_labels(path: str, limit: Optional[int] = None) -> np.ndarray:
    """Returns uint8 array (N,)."""
    raw = _read_bytes(path)
    magic, count = _header(raw, 2, path)
    if magic != LABELS_MAGIC:
        raise ValueError(f"{path}: bad label magic number {magic:#010x}, expected {LABELS_MAGIC:#010x}")
    if limit is not None:
        count = min(count, limit)
    return np.frombuffer(raw, dtype=np.uint8, count=count, offset=8)


def _resolve(data_dir: str, name: str) -> str:
    for candidate in (name, name + ".gz"):
        path = os.path.join(data_dir, candidate)
        if os.path.exists(path):
            return path
    raise FileNotFoundError(f"MNIST file {name}[.gz] not found in {data_dir}")


def load_mnist(data_dir: str, split: str = "train", limit: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Load an MNIST split as network-ready pairs.

    Returns:
      X: (N, 784) pixels scaled to [0, 1]
      Y: (N, 10)  one-hot labels
    """
    if split not in MNIST_FILES:
        raise ValueError(f"split must be one of {sorted(MNIST_FILES)}, got {split!r}")
    images_name, labels_name = MNIST_FILES[split]
    images = load_idx_images(_resolve(data_dir, images_name), limit)
    labels = load_idx_labels(_resolve(data_dir, labels_name), limit)
    if images.shape[0] != labels.shape[0]:
        raise ValueError(f"{images.shape[0]} images but {labels.shape[0]} labels")
    return images.astype(np.float64) / 255.0, one_hot(labels, 10)

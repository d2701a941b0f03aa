"""Per-task network configurations."""

from mlpnet.config.base_config import BaseConfig


class XORConfig(BaseConfig):
    """Two-input XOR with one hidden layer of three units."""

    layers = [2, 3, 1]
    activation = "sigmoid"
    learning_rate = 1.0
    epochs = 10000
    mini_batch_size = None

    save_every = 1000
    eval_every = 100


class MNISTConfig(BaseConfig):
    """28x28 digit images flattened to 784 inputs, one-hot over 10 classes."""

    layers = [784, 64, 10]
    activation = "sigmoid"
    learning_rate = 3.0
    epochs = 30
    mini_batch_size = 10
    windowing = "disjoint"
    scoring = "argmax"

    multiply_backend = "threaded"

    save_every = 5
    eval_every = 1
    early_stopping_patience = 5
    early_stopping_min_delta = 0.0005

    # Data (None: full split)
    train_limit = None
    test_limit = None

"""Base configuration for all networks."""


class BaseConfig:
    """Shared configuration across all networks."""

    # Reproducibility
    seed = 42

    # Model architecture
    layers = [2, 3, 1]
    activation = "sigmoid"  # Options: sigmoid, relu, tanh

    # Training
    learning_rate = 1.0
    epochs = 1000
    mini_batch_size = None   # None: online training (one update per example)
    windowing = "disjoint"   # Options: disjoint, sliding (overlapping windows)

    # Evaluation
    scoring = "round"  # Options: round (exact rounded match), argmax (largest output)

    # Matrix multiplication backend
    multiply_backend = "numpy"  # Options: numpy, threaded, torch
    num_workers = 4             # Threads for the threaded backend
    device = "cuda"             # Device for the torch backend

    # Checkpointing
    save_every = 100
    eval_every = 10

    # Early Stopping (0 disables)
    early_stopping_patience = 0
    early_stopping_min_delta = 0.0

    # Diagnostics
    check_finite = True  # Raise FloatingPointError on a NaN/Inf epoch loss

    # Paths
    data_dir = "data"
    checkpoint_dir = "checkpoints"
    log_dir = "logs"
    output_dir = "outputs"

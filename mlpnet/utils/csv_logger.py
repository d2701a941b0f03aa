"""CSV logger for training metrics and configuration."""

import csv
from datetime import datetime
from pathlib import Path


class CSVLogger:
    """Logger for writing per-epoch training metrics to a CSV file."""

    CONFIG_COLUMNS = [
        'layers',
        'activation',
        'learning_rate',
        'mini_batch_size',
        'windowing',
        'multiply_backend',
        'seed',
    ]

    def __init__(self, log_path, config):
        """
        Initialize CSV logger.

        Args:
            log_path: Path to CSV file
            config: Training configuration object
        """
        self.log_path = Path(log_path)
        self.config = config
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self.columns = self._get_columns()

        # Append to an existing log, otherwise start a new one with a header
        if not self.log_path.exists():
            self._write_header()

    def _get_columns(self):
        """Define all columns for the CSV file."""
        return [
            'timestamp',
            'epoch',

            # Training metrics
            'train_loss',
            'eval_loss',
            'eval_score',
            'eval_total',

            # Best model tracking
            'best_loss',
            'is_best',

            # Checkpoint information
            'checkpoint_path',
            'checkpoint_type',  # 'periodic', 'best', or ''

            # Dataset sizes
            'train_size',
            'eval_size',

            # Timing
            'epoch_time_seconds',
            'cumulative_time_seconds',
        ] + self.CONFIG_COLUMNS

    def _write_header(self):
        with open(self.log_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=self.columns)
            writer.writeheader()

    def _get_config_params(self):
        """Extract the logged hyperparameters from config."""
        params = {}
        for key in self.CONFIG_COLUMNS:
            if hasattr(self.config, key):
                value = getattr(self.config, key)
                # Keep list-valued settings in one cell
                params[key] = '-'.join(str(v) for v in value) if isinstance(value, (list, tuple)) else value
        return params

    def log(self, metrics):
        """
        Log metrics to CSV file.

        Args:
            metrics: Dictionary of metrics to log
        """
        row = dict(metrics)
        row.setdefault('timestamp', datetime.now().strftime('%Y-%m-%d %H:%M:%S'))
        for key, value in self._get_config_params().items():
            row.setdefault(key, value)

        # Missing columns are written as empty cells
        row = {col: row.get(col, '') for col in self.columns}

        with open(self.log_path, 'a', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=self.columns)
            writer.writerow(row)

    def log_epoch(self, epoch, metrics):
        """
        Convenience method to log an epoch with standard metrics.

        Args:
            epoch: Epoch number
            metrics: Dictionary of metrics
        """
        self.log({**metrics, 'epoch': epoch})

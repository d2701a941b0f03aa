"""Training loop for feedforward networks."""

import math
import os
import time
import numpy as np
from tqdm import tqdm

from mlpnet.utils.checkpointing import save_checkpoint
from mlpnet.utils.csv_logger import CSVLogger


class Trainer:
    """Epoch driver around Network's online and mini-batch training loops."""

    def __init__(self, network, config, train_data, eval_data=None, start_epoch=0):
        """
        Args:
            network: Network to train
            config: Training configuration
            train_data: (inputs, expected_outputs) used for gradient steps
            eval_data: (inputs, expected_outputs) used for scoring; defaults to train_data
            start_epoch: Epochs already completed (when resuming from a checkpoint)
        """
        self.network = network
        self.config = config
        self.train_inputs, self.train_outputs = (list(d) for d in train_data)
        eval_data = eval_data if eval_data is not None else train_data
        self.eval_inputs, self.eval_outputs = (list(d) for d in eval_data)

        self.mini_batch_size = getattr(config, 'mini_batch_size', None)
        self.windowing = getattr(config, 'windowing', 'disjoint')
        self.scoring = getattr(config, 'scoring', 'round')
        if self.scoring not in ('round', 'argmax'):
            raise ValueError(f"scoring must be 'round' or 'argmax', got {self.scoring!r}")
        self.check_finite = getattr(config, 'check_finite', True)
        self.rng = np.random.default_rng(getattr(config, 'seed', None))

        self.best_loss = float('inf')
        self.start_epoch = start_epoch or 0
        self.current_epoch = self.start_epoch
        self.cumulative_time = 0.0
        self.history = {'train_loss': [], 'eval_epochs': [], 'eval_loss': [], 'eval_score': []}

        # Early stopping
        self.early_stopping_patience = getattr(config, 'early_stopping_patience', 0)
        self.early_stopping_min_delta = getattr(config, 'early_stopping_min_delta', 0.0)
        self.epochs_without_improvement = 0

        # Initialize CSV logger
        log_dir = getattr(config, 'log_dir', 'logs')
        os.makedirs(log_dir, exist_ok=True)
        timestamp = time.strftime('%Y%m%d_%H%M%S')
        csv_path = os.path.join(log_dir, f'training_log_{timestamp}.csv')
        self.csv_logger = CSVLogger(csv_path, config)
        print(f"CSV logging enabled: {csv_path}")

    def train_epoch(self):
        """Run one epoch and return its mean training loss."""
        if self.mini_batch_size is None:
            loss = self.network.train_epoch(self.train_inputs, self.train_outputs)
        else:
            loss = self.network.stochastic_train_epoch(
                self.train_inputs, self.train_outputs,
                self.mini_batch_size, self.windowing, self.rng,
            )
        if self.check_finite and not math.isfinite(loss):
            raise FloatingPointError(f"Non-finite training loss {loss} at epoch {self.current_epoch}")
        return loss

    def evaluate(self):
        """
        Score the network on the evaluation set.

        Returns:
            loss: Mean squared error
            score: Number of correctly predicted examples
        """
        loss = self.network.loss(self.eval_inputs, self.eval_outputs)
        if self.scoring == 'argmax':
            score = self.network.evaluate_argmax(self.eval_inputs, self.eval_outputs)
        else:
            score = self.network.test(self.eval_inputs, self.eval_outputs)
        return loss, score

    def _save(self, name, epoch, loss):
        path = os.path.join(self.config.checkpoint_dir, name)
        save_checkpoint(self.network, path, epoch=epoch, loss=loss)
        return path

    def train(self, epochs=None):
        """
        Full training loop with evaluation, checkpointing and early stopping.

        Runs `epochs` more epochs, numbered on from start_epoch.

        Returns:
            history: Dict of per-epoch train_loss and per-evaluation eval_loss/eval_score
        """
        epochs = self.config.epochs if epochs is None else epochs
        eval_every = max(1, getattr(self.config, 'eval_every', 1))
        save_every = getattr(self.config, 'save_every', 0)
        total = len(self.eval_inputs)
        last_epoch = self.start_epoch + epochs

        print(f"\nStarting training for {epochs} epochs")
        if self.start_epoch:
            print(f"Continuing from epoch {self.start_epoch}")
        print(f"Network: {self.network}")
        print(f"Training examples: {len(self.train_inputs)} | Evaluation examples: {total}")
        if self.mini_batch_size is None:
            print("Mode: online (one update per example)")
        else:
            print(f"Mode: mini-batch (size {self.mini_batch_size}, {self.windowing} windows)")
        print()

        for epoch in tqdm(range(self.start_epoch + 1, last_epoch + 1), desc="Training"):
            self.current_epoch = epoch
            epoch_start_time = time.time()

            train_loss = self.train_epoch()
            self.history['train_loss'].append(train_loss)

            checkpoint_path = ""
            checkpoint_type = ""
            eval_loss = ''
            score = ''
            is_best = False

            if epoch % eval_every == 0 or epoch == last_epoch:
                eval_loss, score = self.evaluate()
                self.history['eval_epochs'].append(epoch)
                self.history['eval_loss'].append(eval_loss)
                self.history['eval_score'].append(score)
                tqdm.write(f"Epoch {epoch}/{last_epoch} | Train Loss: {train_loss:.6f} | "
                           f"Eval Loss: {eval_loss:.6f} | Score: {score}/{total}")

                if eval_loss < self.best_loss - self.early_stopping_min_delta:
                    self.best_loss = eval_loss
                    is_best = True
                    self.epochs_without_improvement = 0
                    checkpoint_path = self._save('best_model.pt', epoch, eval_loss)
                    checkpoint_type = 'best'
                else:
                    self.epochs_without_improvement += 1

            if save_every and epoch % save_every == 0:
                path = self._save(f'checkpoint_epoch_{epoch}.pt', epoch, train_loss)
                if not checkpoint_path:
                    checkpoint_path = path
                checkpoint_type = f"{checkpoint_type},periodic" if checkpoint_type else 'periodic'

            epoch_time = time.time() - epoch_start_time
            self.cumulative_time += epoch_time

            self.csv_logger.log_epoch(epoch, {
                'train_loss': train_loss,
                'eval_loss': eval_loss,
                'eval_score': score,
                'eval_total': total,
                'best_loss': self.best_loss if math.isfinite(self.best_loss) else '',
                'is_best': is_best,
                'checkpoint_path': checkpoint_path,
                'checkpoint_type': checkpoint_type,
                'train_size': len(self.train_inputs),
                'eval_size': total,
                'epoch_time_seconds': epoch_time,
                'cumulative_time_seconds': self.cumulative_time,
            })

            if self.early_stopping_patience and self.epochs_without_improvement >= self.early_stopping_patience:
                tqdm.write(f"\nEarly stopping: no improvement for {self.epochs_without_improvement} evaluation(s)")
                break

        print(f"\nTraining finished at epoch {self.current_epoch} ({self.cumulative_time:.1f}s)")
        if math.isfinite(self.best_loss):
            print(f"Best eval loss: {self.best_loss:.6f}")
        return self.history

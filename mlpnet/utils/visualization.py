"""Training curve plots."""

import matplotlib.pyplot as plt
from pathlib import Path


def plot_training_history(history, save_path=None, title=None):
    """
    Plot the loss curve and, when available, the evaluation score curve.

    Args:
        history: Dict with 'train_loss' (one value per epoch) and optionally
                 'eval_epochs' / 'eval_score' (score at each evaluated epoch)
        save_path: Optional path to save the figure
        title: Optional figure title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(1, 2, figsize=(12, 5))

    loss = history.get('train_loss', [])
    ax[0].plot(range(1, len(loss) + 1), loss, label='train')
    ax[0].set_title("Training Loss (mean squared error)")
    ax[0].set_xlabel("Epoch"); ax[0].set_ylabel("Loss"); ax[0].legend()

    marks = history.get('eval_epochs', [])
    scores = history.get('eval_score', [])
    if marks and scores:
        ax[1].plot(marks, scores, marker=".", linestyle="-", label='eval')
        ax[1].set_title("Evaluation Score")
        ax[1].set_xlabel("Epoch"); ax[1].set_ylabel("Correct"); ax[1].legend()
    else:
        ax[1].text(0.5, 0.5, "Evaluation snapshots unavailable",
                   ha="center", va="center", transform=ax[1].transAxes)
        ax[1].set_axis_off()

    if title:
        fig.suptitle(title)
    fig.tight_layout()

    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=150)
        print(f"Saved training plot to {save_path}")

    return fig

"""
Observability module for network training.

This module provides TrainingTracker implementations:
- ConsoleTracker, with tqdm progress bars
- SilentTracker, producing no output
"""
from tqdm import tqdm

from digitnet.domain.interfaces.training_tracker import TrainingTracker


class ConsoleTracker(TrainingTracker):
    """
    Training tracker with tqdm progress bars and console output.

    Displays:
    - Overall epoch progress bar
    - Per-epoch sample progress bar with live loss display
    - Tracked loss at epoch end

    Attributes
    ----------
    show_sample_loss : bool
        Whether to show the loss in the sample progress bar.
    refresh_every : int
        Number of samples between two progress bar refreshes.
    """

    def __init__(self, show_sample_loss: bool = True, refresh_every: int = 100) -> None:
        """
        Initialize the ConsoleTracker.

        Parameters
        ----------
        show_sample_loss : bool, optional
            Whether to show the loss in the sample progress bar. Default is True.
        refresh_every : int, optional
            Refresh the sample bar every this many samples. Default is 100.
        """
        self.show_sample_loss = show_sample_loss
        self.refresh_every = max(1, refresh_every)
        self._epoch_pbar: tqdm | None = None
        self._sample_pbar: tqdm | None = None
        self._total_epochs = 0
        self._total_samples = 0
        self._pending = 0

    def on_training_start(
        self,
        total_epochs: int,
        total_samples: int,
        dataset_name: str | None = None,
    ) -> None:
        """Initialize the epoch progress bar."""
        self._total_epochs = total_epochs
        self._total_samples = total_samples

        desc = "Training"
        if dataset_name:
            desc = f"Training on {dataset_name}"

        self._epoch_pbar = tqdm(
            total=total_epochs,
            desc=desc,
            unit="epoch",
            position=0,
            leave=True,
        )

    def on_epoch_start(self, epoch: int) -> None:
        """Initialize the sample progress bar."""
        self._pending = 0
        self._sample_pbar = tqdm(
            total=self._total_samples,
            desc=f"Epoch {epoch + 1}/{self._total_epochs}",
            unit="sample",
            position=1,
            leave=False,
        )

    def on_sample_end(self, epoch: int, sample: int, loss: float) -> None:
        """Advance the sample progress bar, refreshing it every `refresh_every` samples."""
        self._pending += 1
        if self._sample_pbar is None:
            return
        if self._pending >= self.refresh_every or sample == self._total_samples - 1:
            if self.show_sample_loss:
                self._sample_pbar.set_postfix({"loss": f"{loss:.4f}"}, refresh=False)
            self._sample_pbar.update(self._pending)
            self._pending = 0

    def on_epoch_end(self, epoch: int, avg_loss: float) -> None:
        """Close the sample progress bar and update the epoch bar."""
        if self._sample_pbar is not None:
            self._sample_pbar.close()
            self._sample_pbar = None

        if self._epoch_pbar is not None:
            self._epoch_pbar.set_postfix({"avg_loss": f"{avg_loss:.4f}"})
            self._epoch_pbar.update(1)

    def on_training_end(self) -> None:
        """Close all progress bars."""
        if self._sample_pbar is not None:
            self._sample_pbar.close()
            self._sample_pbar = None
        if self._epoch_pbar is not None:
            self._epoch_pbar.close()
            self._epoch_pbar = None


class SilentTracker(TrainingTracker):
    """
    Training tracker that produces no output.

    Useful for testing or when running in non-interactive environments
    where progress output is not desired.
    """

    def on_training_start(
        self,
        total_epochs: int,
        total_samples: int,
        dataset_name: str | None = None,
    ) -> None:
        """No-op implementation."""
        pass

    def on_epoch_start(self, epoch: int) -> None:
        """No-op implementation."""
        pass

    def on_sample_end(self, epoch: int, sample: int, loss: float) -> None:
        """No-op implementation."""
        pass

    def on_epoch_end(self, epoch: int, avg_loss: float) -> None:
        """No-op implementation."""
        pass

    def on_training_end(self) -> None:
        """No-op implementation."""
        pass

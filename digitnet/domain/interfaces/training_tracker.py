"""
Training Tracker Interface.

This module defines the abstract interface for tracking training progress
and metrics. Implementations can provide console output, plain logging,
or stay silent.
"""
from abc import ABC, abstractmethod


class TrainingTracker(ABC):
    """
    Abstract interface for tracking network training progress.

    The network updates its parameters after every single sample, so
    progress is reported per sample rather than per batch.

    The lifecycle follows:
    1. on_training_start() - called once at the beginning
    2. For each epoch:
       a. on_epoch_start()
       b. For each sample: on_sample_end()
       c. on_epoch_end()
    3. on_training_end() - called once at the end, also after early stopping
    """

    @abstractmethod
    def on_training_start(
        self,
        total_epochs: int,
        total_samples: int,
        dataset_name: str | None = None,
    ) -> None:
        """
        Called when training begins.

        Parameters
        ----------
        total_epochs : int
            Maximum number of epochs to train.
        total_samples : int
            Number of training samples per epoch.
        dataset_name : str | None, optional
            Name of the dataset being trained on.
        """
        pass

    @abstractmethod
    def on_epoch_start(self, epoch: int) -> None:
        """
        Called at the start of each epoch.

        Parameters
        ----------
        epoch : int
            Current epoch number (0-indexed).
        """
        pass

    @abstractmethod
    def on_sample_end(self, epoch: int, sample: int, loss: float) -> None:
        """
        Called after the forward, backward and update cycle of one sample.

        Parameters
        ----------
        epoch : int
            Current epoch number (0-indexed).
        sample : int
            Index of the sample in the training set.
        loss : float
            Loss value for this sample.
        """
        pass

    @abstractmethod
    def on_epoch_end(self, epoch: int, avg_loss: float) -> None:
        """
        Called at the end of each epoch.

        Parameters
        ----------
        epoch : int
            Current epoch number (0-indexed).
        avg_loss : float
            Tracked loss of the epoch, the value compared against the
            early-stopping threshold.
        """
        pass

    @abstractmethod
    def on_training_end(self) -> None:
        """Called when training completes."""
        pass

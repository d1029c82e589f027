"""Cross-entropy loss for one-hot classification targets."""
import numpy as np

# Smallest x such that 1.0 + x != 1.0; predictions are clamped to it.
EPSILON = np.finfo(np.float64).eps


class CrossEntropyLoss:
    """Stateless cross-entropy between a probability vector and a target."""

    @staticmethod
    def forward(predictions: np.ndarray, targets: np.ndarray) -> float:
        """
        Compute ``-sum(target_i * log(max(pred_i, eps)))``.

        Parameters
        ----------
        predictions : np.ndarray
            Predicted class probabilities.
        targets : np.ndarray
            Target distribution, usually one-hot.

        Returns
        -------
        float
            Scalar loss.
        """
        safe_predictions = np.maximum(predictions, EPSILON)
        return float(-np.sum(targets * np.log(safe_predictions)))

    @staticmethod
    def backward(predictions: np.ndarray, targets: np.ndarray) -> np.ndarray:
        """
        Gradient of the loss with respect to the predictions.

        Returns ``-target_i / max(pred_i, eps)``; this vector seeds the
        backward pass of the final SoftMax layer.
        """
        return -targets / np.maximum(predictions, EPSILON)

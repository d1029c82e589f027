"""Dataset entity - framework-independent abstraction."""
from typing import Protocol, Any, runtime_checkable


@runtime_checkable
class Dataset(Protocol):
    """Indexed collection of (input vector, one-hot target) samples."""

    def __len__(self) -> int:
        """
        Get the number of samples in the dataset.

        Returns:
            int: The total number of samples.
        """
        ...

    def __getitem__(self, idx: int) -> tuple[Any, Any]:
        """
        Retrieve the input vector and its one-hot target at the given index.

        Parameters:
            idx (int): Index of the sample to retrieve.

        Returns:
            tuple[Any, Any]: A tuple (input, target) for the specified index.
        """
        ...

"""Dataset catalog exceptions."""

from __future__ import annotations


class DatasetNotFoundError(LookupError):
    def __init__(self, dataset_id: int) -> None:
        super().__init__(f"Dataset {dataset_id} not found")
        self.dataset_id = dataset_id


class DatasetExistsError(ValueError):
    """Raised when a dataset name or root path is already registered."""

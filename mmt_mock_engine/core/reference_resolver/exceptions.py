"""
Errors that cross the engine boundary.

Only load failures and top-level lookups of missing ids are raised. Every
other anomaly is reported as a structured warning (see diagnostics.py).
"""

from typing import Optional


class MockEngineError(Exception):
    """Base class for engine errors."""


class LoadError(MockEngineError):
    """The dataset loader failed; every waiter of that load attempt sees this."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class InvalidDatasetError(LoadError):
    """The loaded payload does not have the shape of a mock dataset."""


class NotFoundError(MockEngineError):
    """A requested top-level identifier does not exist in the dataset."""

    def __init__(self, identifier: str, collection: str, message: Optional[str] = None):
        self.identifier = identifier
        self.collection = collection
        super().__init__(message or f"Can not find {identifier} in dataset.{collection}")

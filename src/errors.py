# src/errors.py

"""Exception hierarchy for the price-tracking engine.

Unparseable price text is not an error: the parser returns ``0.0``.
"""


class PriceTrackerError(Exception):
    """Base class for all engine errors."""


class PageLoadError(PriceTrackerError):
    """The ephemeral page handle could not be opened."""


class ExtractionError(PriceTrackerError):
    """The extraction service failed to report a price."""


class ExtractionTimeout(ExtractionError):
    """The extraction service did not answer within the bound."""


class ExtractionUnavailable(ExtractionError):
    """No extraction handler is present on the page."""


class StorageError(PriceTrackerError):
    """The key-value store could not be accessed."""


class StorageReadFailure(StorageError):
    """Reading from the key-value store failed."""


class StorageWriteFailure(StorageError):
    """Writing to the key-value store failed."""

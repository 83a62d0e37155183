"""Exception types raised by ingestion and matching."""


class IngestError(Exception):
    """Base class for ingestion failures."""


class InvalidBatchError(IngestError):
    """The batch itself is unusable (missing, empty, not a list, too large)."""


class DuplicateJobError(IngestError):
    """The store refused an insert because the posting already exists."""


class PersistenceError(IngestError):
    """A store write failed for an otherwise valid posting."""


class MatchingError(Exception):
    """A matching run could not enumerate its inputs or persist its results."""

"""Exceptions raised (or handled locally) by the choreography engine."""


class ChoreographyError(RuntimeError):
    """Base class for choreography related errors."""


class MissingTarget(ChoreographyError):
    """A visual target is not mounted; the affected transfer is skipped."""


class EmptyPairing(ChoreographyError):
    """A pairing produced no transfer operands; treated as a no-op."""


class UnresolvedDestination(ChoreographyError):
    """A lazy destination resolved to nothing; the token holds and retries."""


class SnapshotMisuse(ChoreographyError):
    """dispose() was called without a matching capture."""


class TimelineKilled(ChoreographyError):
    """The timeline was killed and can no longer be driven or extended."""

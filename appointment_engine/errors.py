"""Exception hierarchy raised by the scheduling engine."""


class SchedulerError(Exception):
    """Base class for every error the engine raises."""


class ValidationError(SchedulerError):
    """Input rejected before any state was touched."""


class SlotUnavailableError(SchedulerError):
    """The requested interval was taken between display and commit.

    Callers should re-query availability and let the client choose again.
    """


class InvalidTransitionError(SchedulerError):
    """An appointment or queue entry was asked to make an illegal move."""


class NotFoundError(SchedulerError):
    """The referenced record no longer exists."""


class QueueDisabledError(SchedulerError):
    """The shop has switched the walk-in queue off."""


class QueueFullError(SchedulerError):
    """The waiting list already holds ``max_queue_size`` entries."""


class RepositoryError(SchedulerError):
    """The storage collaborator failed to apply a write."""


class DuplicateProtocolError(RepositoryError):
    """A protocol collided with an existing one on insert. Safe to retry."""

"""Exception hierarchy for enum table synchronization."""


class EnumSyncError(Exception):
    """
    Base exception for synchronization errors.

    Attributes:
        is_logged: True once the error has been written to a log sink
        connection: Redacted identity of the database the error belongs to
    """

    def __init__(self, message: str, *, connection: str | None = None, is_logged: bool = False):
        super().__init__(message)
        self.connection = connection
        self.is_logged = is_logged


class DefinitionError(EnumSyncError, ValueError):
    """Raised when an enum definition violates its invariants."""

    pass


class DataAccessError(EnumSyncError):
    """
    Raised on connectivity, permission or table-shape failures.

    The driver exception is chained as __cause__.
    """

    def __init__(self, message: str, *, table: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.table = table


class PolicyViolation(EnumSyncError):
    """Raised when orphan rows exist and the deletion mode is "error"."""

    def __init__(self, table: str, orphan_ids: list[int], **kwargs):
        ids = ", ".join(str(i) for i in orphan_ids)
        super().__init__(
            f"Table {table} contains {len(orphan_ids)} row(s) with no matching "
            f"enum value (ids: {ids})",
            **kwargs,
        )
        self.table = table
        self.orphan_ids = list(orphan_ids)


class AggregateFailure(EnumSyncError):
    """
    Raised after a parallel run in which one or more databases failed.

    Attributes:
        errors: One exception per failed database, in input order
        outcomes: ConnectionOutcome for every database in the run
    """

    def __init__(self, errors: list[Exception], outcomes: list | None = None):
        super().__init__(
            f"{len(errors)} database(s) failed to update (see log)",
            is_logged=True,
        )
        self.errors = list(errors)
        self.outcomes = list(outcomes or [])

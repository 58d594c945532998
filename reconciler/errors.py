"""Exceptions shared across the reconciliation engine and its collaborators."""


class StageConfigurationError(ValueError):
    """Raised when a stage or weighting function cannot be configured.

    Covers unknown registry names and malformed constructor arguments. Always
    raised while the pipeline is being built, never during reconciliation.
    """

    pass


class CollaboratorUnavailableError(Exception):
    """Raised when the search index or identity store cannot answer.

    Stages absorb this and contribute no results for the call.
    """

    pass

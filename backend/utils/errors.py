"""Domain errors raised by the settlement ledger and expense validation.

Each error carries the HTTP status the API layer should answer with, so
routers can let them propagate and ``main.py`` renders them in one place.
"""


class LedgerError(Exception):
    """Base class for deterministic input/state failures in the core."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidTransition(LedgerError):
    """A settlement transition that is not allowed from the current state.

    Raised for non-pending settlements (409), non-receiver actors (403) and
    bad initiation input such as payer == receiver or a non-positive amount.
    """

    status_code = 409


class ValidationError(LedgerError):
    """Input rejected before anything is written."""

    status_code = 400


class UnbalancedSplit(ValidationError):
    """Split percentages for the two partnership members do not sum to 100."""

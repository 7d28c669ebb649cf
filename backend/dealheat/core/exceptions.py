"""Custom exception classes for the application."""


class DealHeatException(Exception):
    """Base exception for all DealHeat errors."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(DealHeatException):
    """Raised when a requested resource is not found."""

    status_code = 404
    code = "not_found"

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class UnauthenticatedError(DealHeatException):
    """Raised when an operation needs a caller identity and none was resolved."""

    status_code = 401
    code = "unauthenticated"

    def __init__(self, message: str = "Please sign in to continue"):
        super().__init__(message)


class PermissionDeniedError(DealHeatException):
    """Raised when the caller lacks the role an operation requires."""

    status_code = 403
    code = "permission_denied"

    def __init__(self, message: str = "Administrator privileges required"):
        super().__init__(message)


class InvalidDealError(DealHeatException):
    """Raised when a deal submission or moderation input is rejected."""

    status_code = 400
    code = "invalid_deal"


class VoteConflictError(DealHeatException):
    """Raised when a ledger insert loses a uniqueness race.

    Handled inside the vote service by re-reading the ledger and retrying;
    callers only see it wrapped in VoteFailedError once retries run out.
    """

    status_code = 409
    code = "vote_conflict"

    def __init__(self, deal_id: str, user_id: str):
        self.deal_id = deal_id
        self.user_id = user_id
        super().__init__(f"Concurrent vote on deal '{deal_id}' by user '{user_id}'")


class VoteFailedError(DealHeatException):
    """Raised when the ledger and counter update could not be committed together."""

    status_code = 503
    code = "vote_failed"

    def __init__(self, message: str = "Your vote could not be recorded, please try again"):
        super().__init__(message)

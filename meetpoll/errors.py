"""
Confirmation errors

Raised by the confirmation service and rendered to JSON by the handler
registered in main.py. The deadline scheduler logs them per gathering.
"""


class ConfirmationError(Exception):
    """Base class for errors raised while resolving a gathering"""

    status_code = 400
    code = "CONFIRMATION_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class GatheringNotFoundError(ConfirmationError):
    """Gathering not found"""

    status_code = 404
    code = "GATHERING_NOT_FOUND"


class UnauthorizedError(ConfirmationError):
    """Host token is missing or invalid"""

    status_code = 401
    code = "UNAUTHORIZED"


class InvalidStateError(ConfirmationError):
    """Action is not allowed in the gathering's current state"""

    status_code = 409
    code = "INVALID_STATE"


class AlreadyConfirmedError(InvalidStateError):
    """Gathering already has a confirmed result"""

    code = "ALREADY_CONFIRMED"


class InvalidCandidateError(ConfirmationError):
    """Candidate does not belong to this gathering or is required by its kind"""

    status_code = 400
    code = "INVALID_CANDIDATE"

# tutorbill/core/errors.py - Domain errors raised by services and mapped to HTTP in main.py


class TutorBillError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TutorBillError):
    """A referenced student, invoice or document does not exist"""

    status_code = 404


class ValidationError(TutorBillError):
    """Required input missing or an operation not allowed for the record's state"""

    status_code = 400


class StoreError(TutorBillError):
    """The underlying database operation failed"""

    status_code = 503

"""
Domain errors raised by the service layer.
Each error carries a human-readable message and the HTTP status the API maps it to.
"""


class ClinicError(Exception):
    """Base class for all service-layer failures"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClinicError):
    """Missing or malformed input, raised before any write"""

    status_code = 400


class AuthenticationError(ClinicError):
    status_code = 401


class AuthorizationError(ClinicError):
    """Caller lacks the role required for the operation"""

    status_code = 403


class NotFoundError(ClinicError):
    status_code = 404


class ConflictError(ClinicError):
    status_code = 409


class SlotUnavailableError(ConflictError):
    """The doctor already has an active booking for this date and time"""

    pass


class InvalidTransitionError(ConflictError):
    """Appointment status does not allow the requested action"""

    pass


class PersistenceError(ClinicError):
    status_code = 500


class UploadError(ClinicError):
    status_code = 400

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class InvalidCode(ClinicError):
    status_code = 400


class ExpiredCode(ClinicError):
    status_code = 400

"""
Custom exceptions for the user service.

Every exception carries the HTTP status code the API answers with. The
application registers a handler that turns them into ``{"detail": message}``
responses, so services and dependencies simply raise.
"""

from typing import Optional


class UserServiceException(Exception):
    """Base exception for all user service errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ResourceNotFoundError(UserServiceException):
    """Raised when a path identifier is malformed."""

    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class UserNotFoundError(UserServiceException):
    """Raised when a user record does not exist."""

    status_code = 404

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class AddressNotFoundError(UserServiceException):
    """Raised when a user has no address on file."""

    status_code = 404

    def __init__(self, message: str = "Address not found"):
        super().__init__(message)


class UserAlreadyExistsError(UserServiceException):
    """Raised when an email is already registered."""

    status_code = 400

    def __init__(self, message: str = "User already exists"):
        super().__init__(message)


class InvalidUserDataError(UserServiceException):
    """Raised when a user record could not be created."""

    status_code = 400

    def __init__(self, message: str = "Invalid user data"):
        super().__init__(message)


class InvalidCredentialsError(UserServiceException):
    """Raised when email or password do not match."""

    status_code = 401

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class AdminDeletionError(UserServiceException):
    """Raised when an administrator account is targeted for deletion."""

    status_code = 400

    def __init__(self, message: str = "Cannot delete admin user"):
        super().__init__(message)


class NotAuthorizedError(UserServiceException):
    """Raised when the session cookie is missing, invalid, or lacks admin rights."""

    status_code = 401

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)

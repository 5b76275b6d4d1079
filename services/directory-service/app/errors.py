"""
Classified errors raised by the directory core.

Repositories translate store exceptions into these; the HTTP layer maps them
onto status codes through ``status_code``.
"""
from fastapi import status


class DirectoryError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DirectoryError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidCredentialPair(ValidationError):
    def __init__(self, message: str = "Username and password must be supplied together"):
        super().__init__(message)


class AuthenticationFailed(DirectoryError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Login failed"):
        super().__init__(message)


class NotFound(DirectoryError):
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateUsername(DirectoryError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, username: str):
        super().__init__(f"Unable to register new user. Username {username} already exists")
        self.username = username


class StoreFailure(DirectoryError):
    # Public message only; the underlying error is logged where it is caught
    public_message = "Internal server error"

from typing import Optional


class AppError(Exception):
    """
    Base for every failure that is shown to the user.
    `message` is the localized (Thai) text rendered by the client.
    """
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(AppError):
    status_code = 422


class SlotUnavailable(AppError):
    status_code = 409


class StoreError(AppError):
    status_code = 502


class AuthError(AppError):
    """Sign-in failed or the session is missing/expired. Client goes back to sign-in."""
    status_code = 401
    redirect = "/"


class RoleRedirect(AppError):
    """Wrong role for the page. Answered with a silent redirect, never shown."""
    status_code = 303

    def __init__(self, location: str):
        super().__init__(f"Redirect to {location}")
        self.location = location

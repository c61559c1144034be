from __future__ import annotations


class GlucoTrackError(Exception):
    """Base error surfaced to the UI with a display message."""

    status_code = 400
    default_message = "Request failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class NotAuthenticated(GlucoTrackError):
    status_code = 401
    default_message = "User not authenticated."


class InvalidCredentials(GlucoTrackError):
    status_code = 401
    default_message = "Invalid email or password."


class DuplicateAccount(GlucoTrackError):
    status_code = 409
    default_message = "An account with this email already exists."


class EntryNotFound(GlucoTrackError):
    status_code = 404
    default_message = "Entry not found."


class InvalidInput(GlucoTrackError):
    default_message = "Invalid input."

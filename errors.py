"""Error taxonomy shared by the quiz UI and the submission API."""

from __future__ import annotations


class StarterPackError(Exception):
    """Base exception. ``status_code`` is what the HTTP layer responds with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UserInputError(StarterPackError):
    """Missing name, wrongly shaped answers/items, out-of-range index."""

    status_code = 400


class UnauthorizedError(StarterPackError):
    """Missing or incorrect admin key on a protected endpoint."""

    status_code = 401


class InvalidTransition(StarterPackError):
    """A quiz action was attempted from a screen that does not allow it."""

    status_code = 409


class PersistenceError(StarterPackError):
    """The durable per-submission record could not be written."""

    status_code = 500


class TransportError(StarterPackError):
    """The submission never produced a usable response."""

    status_code = 502

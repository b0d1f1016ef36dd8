"""Typed service errors.

Services raise these; the HTTP layer maps ``status_code`` and ``message`` onto
the response (see ``securohelp.main``). Messages stay in the deployment locale.
"""

from __future__ import annotations


class SecuroHelpError(Exception):
    """Base class for every error the core raises on purpose."""

    status_code: int = 500
    default_message: str = "Błąd serwera"

    def __init__(self, message: str | None = None, *, details: object = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFound(SecuroHelpError):
    """Referenced case, status, client or user is missing, deleted or inactive."""

    status_code = 404
    default_message = "Nie znaleziono zasobu"


class InvalidStatus(SecuroHelpError):
    """Requested status id does not exist or is inactive."""

    status_code = 400
    default_message = "Nieprawidłowy status sprawy"


class ValidationError(SecuroHelpError):
    status_code = 400
    default_message = "Nieprawidłowe dane"


class Unauthorized(SecuroHelpError):
    status_code = 401
    default_message = "Brak autoryzacji"


class PersistenceError(SecuroHelpError):
    """The store transaction failed and was rolled back in full."""

    status_code = 500
    default_message = "Błąd zapisu danych"


class ConcurrencyConflict(PersistenceError):
    """Another writer kept winning the case row; resubmitting is safe."""

    status_code = 409
    default_message = "Sprawa została zmieniona równolegle, spróbuj ponownie"

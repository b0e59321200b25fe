"""
Custom exceptions for flask-expiring-csrf.
"""

from werkzeug.exceptions import Forbidden


class CSRFError(Forbidden):
    """Raise if the client sends invalid CSRF data with the request.

    Generates a 403 Forbidden response with the failure reason by default.
    Customize the response by registering a handler with
    :meth:`flask.Flask.errorhandler`.

    Both failure kinds below are expected outcomes of token expiry or
    tampering, so they are reported to the client and never retried.
    """

    description = "CSRF validation failed."


class InvalidToken(CSRFError):
    """The session has no token, or the supplied token does not match it.

    Signals a potential forgery or a client bug.
    """

    description = "Invalid CSRF token"


class SessionTimedOut(CSRFError):
    """The session had a token but it is older than the expiry threshold.

    The client should fetch a fresh token and retry.
    """

    description = "Session timed out"

"""
flask-expiring-csrf
===================

CSRF protection for Flask using expiring server-issued tokens.

This extension issues a random token per client session, keeps it in an
in-memory store for a limited time (30 seconds by default) and requires
it back in the ``X-CSRF-Token`` header of state-changing requests.

Basic usage::

    from flask import Flask
    from flask_expiring_csrf import ExpiringCSRF

    app = Flask(__name__)
    app.config["SECRET_KEY"] = "change-me"
    csrf = ExpiringCSRF(app)

    @app.route("/csrf-token")
    def csrf_token():
        return csrf.generate_token()

Application factory pattern::

    from flask_expiring_csrf import ExpiringCSRF

    csrf = ExpiringCSRF()

    def create_app():
        app = Flask(__name__)
        csrf.init_app(app)
        return app

:license: BSD-3-Clause.
"""

__version__ = "0.1.0"

from .cleanup import CleanupTask
from .exceptions import CSRFError, InvalidToken, SessionTimedOut
from .extension import ExpiringCSRF
from .store import DEFAULT_TIMEOUT, TokenRecord, TokenStore

__all__ = [
    "ExpiringCSRF",
    "TokenStore",
    "TokenRecord",
    "CleanupTask",
    "DEFAULT_TIMEOUT",
    "CSRFError",
    "InvalidToken",
    "SessionTimedOut",
]

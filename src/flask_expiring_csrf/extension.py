"""
CSRF protection for Flask using expiring server-side tokens.

This module provides the ExpiringCSRF class, which issues a random token
per client session, keeps it in an in-memory
:class:`~flask_expiring_csrf.store.TokenStore` and requires it back in a
request header on state-changing requests.
"""

import logging
import secrets

from flask import Blueprint, current_app, request, session

from .cleanup import CleanupTask
from .exceptions import InvalidToken
from .store import DEFAULT_TIMEOUT, TokenStore

logger = logging.getLogger(__name__)

EXTENSION_NAME = "expiring_csrf"


class _CSRFState:
    """Per-application store and cleanup task."""

    def __init__(self, store, cleanup_task=None):
        self.store = store
        self.cleanup_task = cleanup_task


class ExpiringCSRF:
    """Enable CSRF protection with expiring server-issued tokens.

    A view calls :meth:`generate_token` and hands the token to the client,
    which must echo it in the ``X-CSRF-Token`` header of every protected
    request. The token is bound to a random session identifier kept in
    Flask's signed session cookie, so ``SECRET_KEY`` must be set.

    Validation follows these steps:

    1. Allow safe methods (GET, HEAD, OPTIONS, TRACE)
    2. Allow exempt views and blueprints
    3. Reject requests whose session has no token (``InvalidToken``)
    4. Reject tokens older than the timeout (``SessionTimedOut``)
    5. Reject tokens that differ from the stored one (``InvalidToken``)

    ::

        app = Flask(__name__)
        csrf = ExpiringCSRF(app)

        @app.route('/csrf-token')
        def csrf_token():
            return csrf.generate_token()

    Or with the application factory pattern::

        csrf = ExpiringCSRF()

        def create_app():
            app = Flask(__name__)
            csrf.init_app(app)
            return app

    :param app: The Flask application to protect.
    :param store: A :class:`TokenStore` to share between all applications
        this extension is initialized on. By default each application gets
        its own store built from its configuration.
    """

    # Safe HTTP methods that don't require CSRF protection
    SAFE_METHODS = frozenset(["GET", "HEAD", "OPTIONS", "TRACE"])

    def __init__(self, app=None, store=None):
        self._store = store
        self._shared_cleanup_task = None
        self._exempt_views = set()
        self._exempt_blueprints = set()

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Register CSRF protection with a Flask application.

        Sets up configuration defaults, creates the token store, starts the
        periodic cleanup task and registers a before_request handler to
        validate requests.

        Calling it again on the same application does nothing.

        :param app: The Flask application to protect.
        """
        if EXTENSION_NAME in app.extensions:
            logger.debug("ExpiringCSRF already initialized on %s", app.name)
            return

        app.config.setdefault("EXPIRING_CSRF_TIMEOUT", DEFAULT_TIMEOUT)
        app.config.setdefault("EXPIRING_CSRF_SINGLE_USE", False)
        app.config.setdefault("EXPIRING_CSRF_HEADER", "X-CSRF-Token")
        app.config.setdefault(
            "EXPIRING_CSRF_METHODS", ["POST", "PUT", "PATCH", "DELETE"]
        )
        app.config.setdefault("EXPIRING_CSRF_CLEANUP_INTERVAL", DEFAULT_TIMEOUT)
        app.config.setdefault("EXPIRING_CSRF_SESSION_KEY", "_csrf_session_id")

        store = self._store
        if store is None:
            store = TokenStore(
                timeout=app.config["EXPIRING_CSRF_TIMEOUT"],
                single_use=app.config["EXPIRING_CSRF_SINGLE_USE"],
            )

        cleanup_task = None
        interval = app.config["EXPIRING_CSRF_CLEANUP_INTERVAL"]
        shared_task = self._shared_cleanup_task
        if store is self._store and shared_task is not None and shared_task.running:
            # One sweep per shared store
            cleanup_task = shared_task
        elif interval:
            cleanup_task = CleanupTask(store, interval)
            cleanup_task.start()
            if store is self._store:
                self._shared_cleanup_task = cleanup_task

        app.extensions[EXTENSION_NAME] = _CSRFState(store, cleanup_task)

        @app.before_request
        def expiring_csrf_protect():
            # Step 1: Allow safe methods
            if request.method in self.SAFE_METHODS:
                return

            if request.method not in current_app.config["EXPIRING_CSRF_METHODS"]:
                return

            if request.endpoint is None:
                return

            # Step 2: Allow exempt views and blueprints
            if self._is_exempt():
                return

            self.protect()

    def _get_state(self, app=None):
        if app is None:
            app = current_app
        return app.extensions[EXTENSION_NAME]

    def get_store(self, app=None):
        """Return the token store of ``app`` (the current app by default)."""
        return self._get_state(app).store

    def get_cleanup_task(self, app=None):
        """Return the cleanup task of ``app``, or ``None`` if disabled."""
        return self._get_state(app).cleanup_task

    def stop_cleanup(self, app=None):
        """Cancel the periodic cleanup task of ``app`` and wait for it.

        With a shared store this stops the sweep for every application
        using it.
        """
        task = self.get_cleanup_task(app)
        if task is not None:
            task.cancel()
            task.join()

    def _is_exempt(self):
        """Check if the current request is exempt from CSRF validation."""
        if request.blueprint in self._exempt_blueprints:
            return True

        view = current_app.view_functions.get(request.endpoint)
        if view is not None:
            view_location = f"{view.__module__}.{view.__name__}"
            if view_location in self._exempt_views:
                return True

        return False

    def _session_id(self, create=False):
        """Get the session identifier from the session cookie.

        :param create: Generate and store one if the session has none.
        """
        key = current_app.config["EXPIRING_CSRF_SESSION_KEY"]
        session_id = session.get(key)
        if session_id is None and create:
            session_id = secrets.token_urlsafe(16)
            session[key] = session_id
        return session_id

    def generate_token(self):
        """Issue a new token for the current session.

        Any token previously issued to the session stops being accepted.

        :return: The token to send to the client.
        """
        if not current_app.secret_key:
            raise RuntimeError(
                "ExpiringCSRF keeps the session id in the session cookie;"
                " set SECRET_KEY on the application."
            )

        session_id = self._session_id(create=True)
        return self.get_store().issue_token(session_id)

    def protect(self):
        """Validate the current request for CSRF.

        This is called automatically for protected HTTP methods.
        Can also be called manually in views if needed.

        :raises InvalidToken: If the session has no token or it differs.
        :raises SessionTimedOut: If the session's token has expired.
        """
        session_id = self._session_id()
        if session_id is None:
            logger.info("CSRF check on %s without a session", request.path)
            raise InvalidToken()

        token = request.headers.get(current_app.config["EXPIRING_CSRF_HEADER"])
        self.get_store().validate_token(session_id, token)

    def exempt(self, view):
        """Exempt a view or blueprint from CSRF protection.

        Can be used as a decorator on a view::

            @csrf.exempt
            @app.route('/webhook', methods=['POST'])
            def webhook():
                return 'OK'

        Or called directly on a blueprint::

            api = Blueprint('api', __name__)
            csrf.exempt(api)

        :param view: A view function or Blueprint to exempt.
        :return: The original view or blueprint.
        """
        if isinstance(view, Blueprint):
            self._exempt_blueprints.add(view.name)
        else:
            view_location = f"{view.__module__}.{view.__name__}"
            self._exempt_views.add(view_location)

        return view

"""
pytest fixtures for flask-expiring-csrf tests.
"""
import pytest
from flask import Flask

from flask_expiring_csrf import CSRFError, ExpiringCSRF, TokenStore


class FakeClock:
    """Clock whose time only moves when told to."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """A token store with the default 30 second timeout driven by ``clock``."""
    return TokenStore(clock=clock)


@pytest.fixture
def app():
    """Create a Flask test application."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["EXPIRING_CSRF_CLEANUP_INTERVAL"] = None

    @app.route("/", methods=["GET"])
    def index():
        return "OK"

    @app.route("/process", methods=["POST"])
    def process():
        return "OK"

    @app.route("/update", methods=["PUT"])
    def update():
        return "OK"

    @app.route("/delete", methods=["DELETE"])
    def delete():
        return "OK"

    return app


@pytest.fixture
def csrf(app, store):
    """Initialize CSRF extension on the app, with a token route."""
    csrf = ExpiringCSRF(app, store=store)

    @app.route("/csrf-token", methods=["GET"])
    def csrf_token():
        return csrf.generate_token()

    return csrf


@pytest.fixture
def client(app, csrf):
    """Create a test client with CSRF protection enabled."""
    return app.test_client()


@pytest.fixture
def plain_errors(app):
    """Answer CSRF failures with the bare message, as the tutorial app does."""
    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        return error.description, error.code

"""
Flask application using the factory pattern with expiring CSRF tokens.

Run with:
    flask --app examples.factory_pattern:create_app run
"""

from flask import Blueprint, Flask

from flask_expiring_csrf import ExpiringCSRF

csrf = ExpiringCSRF()

api = Blueprint("api", __name__)


@api.route("/csrf-token")
def csrf_token():
    return {"token": csrf.generate_token()}


@api.route("/data", methods=["POST"])
def post_data():
    return {"status": "ok"}


def create_app(config=None):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = "dev"
    app.config["EXPIRING_CSRF_SINGLE_USE"] = True

    if config:
        app.config.update(config)

    csrf.init_app(app)
    app.register_blueprint(api, url_prefix="/api")

    @app.route("/")
    def index():
        return {"message": "Hello"}

    return app


if __name__ == "__main__":
    create_app().run(debug=True, use_reloader=False)

"""
The tutorial server: fetch a token, then post it back within 30 seconds.

Run with:
    flask --app examples/basic_app run --port 3000

Then:
    curl -c jar http://127.0.0.1:3000/csrf-token
    curl -b jar -X POST -H "X-CSRF-Token: <token>" http://127.0.0.1:3000/process

Posting after more than 30 seconds answers "Session timed out", or
"Invalid CSRF token" once the cleanup task has removed the token.
"""
from flask import Flask

from flask_expiring_csrf import CSRFError, ExpiringCSRF

app = Flask(__name__)
app.config["SECRET_KEY"] = "dev"
csrf = ExpiringCSRF(app)


@app.errorhandler(CSRFError)
def handle_csrf_error(error):
    return error.description, error.code, {"Content-Type": "text/plain"}


@app.route("/csrf-token")
def csrf_token():
    return csrf.generate_token()


@app.route("/process", methods=["POST"])
def process():
    # Only reached when the X-CSRF-Token header matches an unexpired token
    return "Processed"


if __name__ == "__main__":
    # No reloader: its watcher process would run a second cleanup thread
    app.run(host="0.0.0.0", port=3000, debug=True, use_reloader=False)

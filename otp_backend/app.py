"""
FLASK APP ENTRY POINT - OTP BACKEND SERVER

Sets up the Flask app, CORS and the /api blueprint.

    python -m otp_backend.app          # http://localhost:5000
"""
import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify
from flask_cors import CORS

from otp_engine import CounterExhausted, OtpError

from .config import load_config
from .routes import otp_bp

logger = logging.getLogger(__name__)


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(load_config())
    if overrides:
        app.config.update(overrides)

    # frontend may run on another origin
    CORS(app, origins=app.config["CORS_ORIGINS"])

    app.register_blueprint(otp_bp)

    @app.errorhandler(OtpError)
    def handle_otp_error(e: OtpError):
        # misconfiguration, not a failed login
        logger.warning("OTP configuration error: %s: %s", e.kind, e)
        status = 409 if isinstance(e, CounterExhausted) else 400
        return jsonify({"error": e.kind, "message": str(e)}), status

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "otp-engine",
            "endpoints": sorted(
                str(rule) for rule in app.url_map.iter_rules() if str(rule).startswith("/api")
            ),
        })

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    app.run(debug=True, host="0.0.0.0", port=5000)

import atexit
import logging
import os
from datetime import date, datetime

import click
from blueprints.auth import auth_bp
from blueprints.jobs import jobs_bp
from blueprints.locations import locations_bp
from blueprints.notifications import notifications_bp
from blueprints.system import system_bp
from config import Config
from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from utils.services import (
    get_job_discovery_service,
    get_verification_service,
    init_services,
    shutdown_services,
)

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class MarketplaceJSONProvider(DefaultJSONProvider):
    """JSON provider that writes dates and datetimes as ISO 8601."""

    @staticmethod
    def default(o):
        if isinstance(o, (date, datetime)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def create_app(config_object=Config):
    """Application factory function."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.json = MarketplaceJSONProvider(app)

    # Initialize JWT
    jwt = JWTManager(app)

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"status": "error", "message": "Token has expired"}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        logger.error(f"Invalid token error: {str(error)}")
        return jsonify({"status": "error", "message": "Not authorized, token failed"}), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({"status": "error", "message": "Not authorized, no token"}), 401

    # Initialize CORS
    CORS(
        app,
        origins=config_object.CORS_ORIGINS,
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
    )

    # Register Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(jobs_bp)
    app.register_blueprint(locations_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(system_bp)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"status": "error", "message": "Route not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"status": "error", "message": "Method not allowed"}), 405

    @app.cli.command("expire-jobs")
    def expire_jobs_command():
        """Cancel open jobs whose scheduled time has passed."""
        result = get_job_discovery_service().expire_old_jobs()
        click.echo(
            f"checked={result['checked']} matched={result['matched']} updated={result['updated']}"
        )

    @app.cli.command("cleanup-verifications")
    def cleanup_verifications_command():
        """Delete expired phone verification records."""
        deleted = get_verification_service().cleanup_expired()
        click.echo(f"deleted={deleted}")

    # Shared notification dispatcher and SMS client, built once
    init_services(app)

    # Drain background work on process exit
    atexit.register(shutdown_services, app)

    return app


app = create_app()

if __name__ == "__main__":
    debug = os.getenv("ENVIRONMENT", "development") == "development"
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=debug, use_reloader=debug)

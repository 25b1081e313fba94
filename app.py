import logging
import os
import time

from flask import Flask, current_app, jsonify
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from auth import jwt
from config import Config
from database import EXTENSION_KEY, Database, TrackerContext, get_context
from errors import ExpenseTrackerError
from expense_store import ExpenseStore
from expenses import expenses_bp
from users import users_bp


def create_app(config_object=None, **overrides):
    """Build the Flask app and everything it depends on.

    ``overrides`` win over ``config_object``; tests use them to point the
    database and upload folder into a temp dir.
    """
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = Database(app.config["DATABASE_URL"])
    db.init_db()
    app.extensions[EXTENSION_KEY] = TrackerContext(
        db=db,
        store=ExpenseStore(db),
        upload_folder=app.config["UPLOAD_FOLDER"],
        max_page_size=app.config.get("MAX_PAGE_SIZE"),
    )
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    jwt.init_app(app)
    origins = [o.strip() for o in app.config.get("CORS_ORIGINS", "").split(",") if o.strip()]
    CORS(app, resources={r"/api/*": {"origins": origins}})

    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(expenses_bp, url_prefix="/api/expenses")

    register_error_handlers(app)
    register_health_routes(app)
    return app


def register_error_handlers(app):
    @app.errorhandler(ExpenseTrackerError)
    def handle_tracker_error(error):
        if error.status_code >= 500:
            current_app.logger.error("%s: %s", type(error).__name__, error.message, exc_info=error)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(error):
        current_app.logger.exception("Database error")
        return jsonify({"message": "Database error."}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        current_app.logger.exception("Unhandled error")
        return jsonify({"message": "Unexpected server error."}), 500


def register_health_routes(app):
    @app.route("/ping")
    def ping():
        """Health check without touching the database"""
        return jsonify({"status": "ok", "timestamp": time.time()}), 200

    @app.route("/status")
    def status():
        """Readiness check: one database round-trip"""
        start = time.time()
        try:
            get_context().db.ping()
        except SQLAlchemyError:
            current_app.logger.exception("Status check failed")
            return jsonify({"status": "error", "database": "unreachable"}), 503
        return jsonify({"status": "ok", "database": "ok", "dbTime": round(time.time() - start, 4)}), 200

# backend/app.py
from __future__ import annotations

import os
import logging

import click
from flask import Flask, jsonify, request
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config import get_config
from db import db, migrate, ConnectionHandle
from services.errors import ServiceError, UpstreamError

# Ensure models are imported so Flask-Migrate sees them
from models.user import User
from models.user_otp import UserOtp
from models.task import Task

# Blueprints
from routes.auth import auth_bp
from routes.user import user_bp
from routes.admin import admin_bp
from routes.user_management import user_mgmt_bp

# Endpoints that must answer even when the database is down
_DB_FREE_ENDPOINTS = {"health_check", "static"}


def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__)

    # Respect reverse proxy headers (scheme / host) for correct URL generation
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[arg-type]

    # Load config + init extensions
    cfg = get_config(config_name)
    app.config.from_object(cfg)
    if not app.config.get("SECRET_KEY"):
        raise RuntimeError("SECRET_KEY must be set for this environment")

    app.logger.setLevel(getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO))

    CORS(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    db.init_app(app)
    migrate.init_app(app, db)

    # Touch models so Alembic/Flask-Migrate registers them
    _ = (User, UserOtp, Task)

    # One lazily-established connection per process, shared by concurrent first requests
    app.extensions["db_handle"] = ConnectionHandle()

    @app.before_request
    def _ensure_db():
        if request.endpoint in _DB_FREE_ENDPOINTS:
            return None
        try:
            app.extensions["db_handle"].ensure()
        except SQLAlchemyError as e:
            app.logger.error("[db] connection failed, will retry on next request: %s", e)
            raise UpstreamError("Database unavailable") from e
        return None

    @app.teardown_request
    def _rollback_on_error(exc):
        if exc is not None:
            db.session.rollback()

    # Health check
    @app.route("/")
    def health_check():
        return jsonify(status="ok", db=app.extensions["db_handle"].ready), 200

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify(error="Not Found", path=request.path), 404

    @app.errorhandler(ServiceError)
    def handle_service_error(e: ServiceError):
        db.session.rollback()
        if e.status_code >= 500:
            app.logger.error("[app] %s %s -> %s: %s", request.method, request.path, e.status_code, e.message)
        return jsonify(e.to_dict()), e.status_code

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(error=e.description), e.code
        db.session.rollback()
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        return jsonify(error="Internal server error"), 500

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(user_mgmt_bp)

    # CLI
    @app.cli.command("init-db")
    def init_db_cmd():
        db.create_all()
        click.echo("Tables created.")

    @app.cli.command("seed-admin")
    def seed_admin_cmd():
        from seed_admin import seed_admin
        created = seed_admin(app)
        click.echo("Admin created." if created else "Admin refreshed.")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app()
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        debug=bool(os.environ.get("FLASK_DEBUG", "")),
    )

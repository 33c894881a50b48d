import logging
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_compress import Compress
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Load environment variables early so config is available for blueprint creation
load_dotenv()

from quizhub.config import config  # noqa: E402

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
compress = Compress()


def create_app(test_config: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Application factory for the quiz API.

    Loads configuration from the environment, applies ``test_config``
    overrides, initialises the extensions and registers blueprints.
    """
    # Re-initialize config to ensure latest .env values are loaded
    from quizhub.config import Config
    global config
    config = Config()
    config.validate()

    app = Flask(__name__)

    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["SQLALCHEMY_DATABASE_URI"] = config.SQLALCHEMY_DATABASE_URI
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = config.SQLALCHEMY_TRACK_MODIFICATIONS
    app.config["SQLALCHEMY_ECHO"] = config.SQLALCHEMY_ECHO
    app.config["SESSION_COOKIE_SECURE"] = config.SESSION_COOKIE_SECURE
    app.config["SESSION_COOKIE_HTTPONLY"] = config.SESSION_COOKIE_HTTPONLY
    app.config["SESSION_COOKIE_SAMESITE"] = config.SESSION_COOKIE_SAMESITE
    app.config["MIN_PASSWORD_LENGTH"] = config.MIN_PASSWORD_LENGTH
    app.config["BCRYPT_ROUNDS"] = config.BCRYPT_ROUNDS
    app.config["QUIZ_REQUIRE_PUBLISHED"] = config.QUIZ_REQUIRE_PUBLISHED
    app.config["DEFAULT_PAGE_SIZE"] = config.DEFAULT_PAGE_SIZE
    app.config["MAX_PAGE_SIZE"] = config.MAX_PAGE_SIZE

    app.config["COMPRESS_MIMETYPES"] = ["application/json"]
    app.config["COMPRESS_LEVEL"] = 6
    app.config["COMPRESS_MIN_SIZE"] = 500

    if test_config:
        app.config.update(test_config)

    # Connection pooling only makes sense for the MySQL deployment
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("mysql"):
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {
            "pool_size": 10,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
            "max_overflow": 20,
            "connect_args": {
                "connect_timeout": 5,
                "charset": "utf8mb4",
            },
        })

    app.logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    compress.init_app(app)

    from quizhub.security import init_security
    init_security(app)

    @login_manager.user_loader
    def load_user(user_id):
        from quizhub.auth.models import User
        try:
            return db.session.get(User, int(user_id))
        except (ValueError, TypeError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"success": False, "error": "Authentication required", "kind": "unauthorized"}), 401

    from quizhub.quiz.errors import QuizError

    @app.errorhandler(QuizError)
    def handle_quiz_error(e):
        """Turn typed domain errors into the JSON error envelope."""
        from quizhub.security import SecurityLogger
        if e.status_code in (401, 403):
            from quizhub.auth.identity import current_caller_id
            SecurityLogger.log_access_denied(request.path, current_caller_id(), e.kind)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(404)
    def handle_404(e):
        """Return JSON for unknown API routes."""
        path = request.path
        app.logger.warning(f"404 error: {request.method} {path}")
        if path.startswith(config.API_PREFIX):
            return jsonify({
                "success": False,
                "error": f"Route not found: {request.method} {path}",
            }), 404
        return f"Page not found: {path}", 404

    @app.errorhandler(405)
    def handle_405(e):
        path = request.path
        app.logger.warning(f"405 error: {request.method} {path}")
        if path.startswith(config.API_PREFIX):
            return jsonify({
                "success": False,
                "error": f"Method not allowed: {request.method} {path}",
            }), 405
        return e

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    from quizhub.auth import auth_bp
    app.register_blueprint(auth_bp)

    from quizhub.quiz import quiz_bp
    app.register_blueprint(quiz_bp)

    # Create tables if they do not exist
    with app.app_context():
        from quizhub.auth.models import User  # noqa: F401
        from quizhub.quiz import models  # noqa: F401
        db.create_all()

    return app

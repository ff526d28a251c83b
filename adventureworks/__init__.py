import os
import time
import logging
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request
from flask_compress import Compress
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from adventureworks.utils.logging_utils import get_logger, init_logger

# Load environment variables from .env file
load_dotenv()

# Import configuration after loading .env
from .config import config, Config
from .extensions import db, ma
from .commands import init_db_command, seed_command
from .routes import register_blueprints


def configure_logging(app):
    log_file = app.config.get('LOG_FILE', '/tmp/adventureworks_api.log')
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'))
    has_file_handler = any(isinstance(h, RotatingFileHandler) for h in app.logger.handlers)
    if not has_file_handler:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=app.config.get('LOG_MAX_BYTES', 10485760),  # 10MB default
            backupCount=app.config.get('LOG_BACKUP_COUNT', 5)
        )
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        app.logger.addHandler(file_handler)

    app.logger.setLevel(log_level)
    app.logger.info("Logging configured with level: %s", app.config.get('LOG_LEVEL', 'INFO'))

    # Configure categorized loggers using the same application config.
    init_logger(app)


def create_app(config_name=None):
    # Determine configuration based on environment variable or parameter
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'default')

    config_class = config.get(config_name, Config)

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize configuration-specific setup
    config_class.init_app(app)

    configure_logging(app)
    app.logger.info("Using config: %s", config_class.__name__)
    get_logger("app").info("Application startup with config %s", config_class.__name__)

    db.init_app(app)
    ma.init_app(app)
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_command)

    # ------------------------------------------------------------------
    # Access log
    # ------------------------------------------------------------------
    @app.before_request
    def _log_request():
        g.request_started = time.perf_counter()
        get_logger("route").info(
            "request method=%s path=%s ip=%s args=%s",
            request.method,
            request.path,
            request.remote_addr,
            request.args.to_dict(),
        )

    @app.after_request
    def _log_response(resp):
        started = getattr(g, "request_started", None)
        elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else -1
        get_logger("route").info(
            "response method=%s path=%s status=%s elapsed_ms=%.1f",
            request.method,
            request.path,
            resp.status_code,
            elapsed_ms,
        )
        resp.headers.setdefault('X-Content-Type-Options', 'nosniff')
        return resp

    # ------------------------------------------------------------------
    # Error Handlers (JSON bodies for every HTTP error)
    # ------------------------------------------------------------------
    @app.errorhandler(404)
    def _not_found(e):
        return jsonify({"error": e.description or "not_found"}), 404

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return jsonify({"error": "method_not_allowed"}), 405

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(500)
    def _server_error(e):
        get_logger("error").error("Unhandled server error on %s %s", request.method, request.path)
        app.logger.exception("Unhandled server error")
        return jsonify({"error": "internal_server_error"}), 500

    Compress(app)
    CORS(app, origins=app.config.get('CORS_ORIGINS', '*'))
    app.logger.info("Middleware loaded: Compress, CORS")

    register_blueprints(app)
    app.logger.info("Blueprints registered.")

    return app

# backend/gymadmin/__init__.py
from flask import Flask, request

from .config import AuthMode, Config, validate_config
from .extensions import db, migrate



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Refuse to start with an unsafe auth configuration
    auth_mode = validate_config(app.config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Access core: built once, shared read-only by every request
    from .permissions import build_default_registry
    from .services.identity_service import build_identity_resolver
    from .services.platform_identity import PlatformIdentityClient

    platform_client = app.config.get("PLATFORM_IDENTITY_CLIENT") or PlatformIdentityClient(
        app.config["PLATFORM_AUTH_URL"],
        app.config["PLATFORM_SERVICE_KEY"],
        timeout=app.config["PLATFORM_AUTH_TIMEOUT"],
    )
    app.extensions["auth_mode"] = auth_mode
    app.extensions["permission_registry"] = build_default_registry()
    app.extensions["platform_identity"] = platform_client
    app.extensions["identity_resolver"] = build_identity_resolver(
        auth_mode,
        platform_client,
        app.config["DEV_BYPASS_ROLE"],
    )
    if auth_mode is AuthMode.DEVELOPMENT_BYPASS:
        app.logger.warning("AUTH_MODE=development_bypass: unauthenticated requests get a synthetic principal")

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.staff import staff_bp
    from .routes.access import access_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(staff_bp)
    app.register_blueprint(access_bp)

    from .errors import register_error_handlers
    register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, X-Session-Token"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app

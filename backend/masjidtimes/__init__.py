import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration

# Import extensions from the central extensions file
from .extensions import db, limiter, migrate
import logging
from flask import Flask
from flask_cors import CORS
from flask_smorest import Api

# Declare extensions that are not in the extensions file
cors = CORS()


def create_app(config_name, config_overrides=None):
    """
    Flask Application Factory function.
    `config_overrides` is applied on top of the named config (used by tests and scripts).
    """
    app = Flask(__name__,
                instance_relative_config=False)

    # 1. Load Config
    from .config import config_by_name
    config_obj = config_by_name.get(config_name, config_by_name['default'])
    app.config.from_object(config_obj)
    if config_overrides:
        app.config.update(config_overrides)

    # 2. Set up Logging
    log_level_str = str(app.config.get('LOG_LEVEL', 'INFO')).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    app.logger.setLevel(log_level)
    logging.getLogger('masjidtimes').setLevel(log_level)
    app.logger.info(f"App configured with: {config_obj.__name__}")

    # Flask-Smorest API documentation configuration
    app.config["API_TITLE"] = "MasjidTimes API"
    app.config["API_VERSION"] = "v1"
    app.config["OPENAPI_VERSION"] = "3.0.2"
    app.config["OPENAPI_URL_PREFIX"] = "/api/docs"
    app.config["OPENAPI_SWAGGER_UI_PATH"] = "/swagger-ui"
    app.config["OPENAPI_SWAGGER_UI_URL"] = "https://cdn.jsdelivr.net/npm/swagger-ui-dist/"

    # 3. Sentry SDK initialization - for error and performance tracking
    if app.config.get('SENTRY_DSN'):
        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=1.0
        )
        app.logger.info("Sentry initialized for error tracking.")

    # 4. Initialize Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(app, resources={r"/api/*": {"origins": "*"}})
    limiter.init_app(app)

    # Flask-Smorest keeps its OpenAPI spec per application
    api = Api(app)

    # 5. Build the process-wide calendar store and mosque registry
    from .services.calendar_store import build_calendar_store
    from .services.mosque_service import MosqueRegistry
    app.extensions['calendar_store'] = build_calendar_store(app.config)
    app.extensions['mosque_registry'] = MosqueRegistry.from_config(app.config)
    app.logger.info(f"Calendar source: {app.config.get('CALENDAR_SOURCE')}")

    # 6. Register Blueprints in app context
    with app.app_context():
        from .routes.api_routes import api_bp

        api.register_blueprint(api_bp)

        app.logger.info(f"Application initialized with environment: {app.config.get('FLASK_ENV')}, Debug: {app.config.get('DEBUG')}")

    # 7. Finally, return the app
    return app

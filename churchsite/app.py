"""
Church Site - Application Factory
Public pages, admin panel and the tiered content store behind them
"""
import os
import sys
import logging
import warnings

# Suppress the in-memory storage warning from Flask-Limiter
warnings.filterwarnings("ignore", category=UserWarning, module="flask_limiter")

import flask.cli
flask.cli.show_server_banner = lambda *args: None

from flask import Flask
import structlog

from churchsite.admin_settings import AdminSettingsStore
from churchsite.auth import auth_blueprint, login_manager, limiter
from churchsite.constants import BUILD_VERSION, CONFIG_DIR, TRANSLATIONS_DIR
from churchsite.content_store import TieredContentStore
from churchsite.exceptions import register_exception_handlers
from churchsite.i18n import I18n
from churchsite.jsonbin import DocumentCache, JsonBinClient, RemoteDocumentStore
from churchsite.local_store import LocalFileStore
from churchsite.locale_sync import LocalePairSynchronizer
from churchsite.metrics import init_metrics
from churchsite.routes.admin import admin_bp
from churchsite.routes.public import public_bp
from churchsite.settings import load_settings, merge_settings
from churchsite.utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs, get_or_create_secret_key

logger = structlog.get_logger('main')


def configure_logging(level=logging.INFO):
    formatter = ColoredFormatter(
        '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler]
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Apply filter to hide date from http access logs
    logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())


def build_stores(settings, clock=None):
    """Content store, locale synchronizer and admin settings store from settings"""
    remote_cfg = settings.get("remote", {})
    api_url = remote_cfg.get("api_url")
    timeout = float(remote_cfg.get("timeout", 10))

    content_client = JsonBinClient(remote_cfg.get("bin_id"), remote_cfg.get("secret"), api_url, timeout, name="content")
    cache_kwargs = {"ttl": float(remote_cfg.get("cache_ttl", 30))}
    if clock is not None:
        cache_kwargs["clock"] = clock
    remote = RemoteDocumentStore(content_client, DocumentCache(**cache_kwargs))

    content_store = TieredContentStore(LocalFileStore(settings["storage"]["content_dir"]), remote)
    locale_sync = LocalePairSynchronizer(content_store)

    admin_client = JsonBinClient(remote_cfg.get("admin_bin_id"), remote_cfg.get("secret"), api_url, timeout, name="admin")
    admin_settings = AdminSettingsStore(admin_client)

    if remote.configured:
        logger.info(f"Remote content bin configured ({api_url})")
    else:
        logger.info("Remote content bin not configured, using local files only")
    return content_store, locale_sync, admin_settings


def create_app(test_config=None, settings=None):
    """Application factory"""
    app = Flask(__name__)

    if settings is None:
        settings = load_settings()
    if test_config and test_config.get("SITE_SETTINGS"):
        settings = merge_settings(settings, test_config["SITE_SETTINGS"])

    if not (test_config and test_config.get('SECRET_KEY')):
        app.config['SECRET_KEY'] = get_or_create_secret_key(CONFIG_DIR)
    app.config['SITE_SETTINGS'] = settings
    app.config['UPLOAD_DIR'] = settings["storage"]["upload_dir"]
    if test_config:
        app.config.update({k: v for k, v in test_config.items() if k != "SITE_SETTINGS"})

    # Initialize login manager
    login_manager.init_app(app)
    limiter.init_app(app)

    # Initialize I18n
    app.i18n = I18n(app, translations_dir=TRANSLATIONS_DIR)

    # Storage
    app.content_store, app.locale_sync, app.admin_settings = build_stores(settings, clock=app.config.get("CACHE_CLOCK"))

    # Register exception handlers
    register_exception_handlers(app)

    # Register blueprints
    app.register_blueprint(auth_blueprint)
    app.register_blueprint(admin_bp)
    app.register_blueprint(public_bp)

    # Initialize metrics
    init_metrics(app)

    return app


def main():
    configure_logging()
    app = create_app()
    port = int(os.environ.get('PORT', 3000))
    logger.info(f'Build Version: {BUILD_VERSION}')
    logger.info(f'Starting server on port {port}...')
    app.run(host="0.0.0.0", port=port, threaded=True, debug=False, use_reloader=False)
    logger.info('Shutting down server...')


if __name__ == '__main__':
    main()

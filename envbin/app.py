from datetime import datetime

from flask import Flask
from werkzeug.debug import DebuggedApplication
from werkzeug.middleware.proxy_fix import ProxyFix

from envbin.api.views import api
from envbin.extensions import faults
from envbin.observability import ObservabilityMiddleware, setup_logging
from envbin.page.views import page
from envbin.up.views import up


def create_app(settings_override=None):
    """
    Create a Flask application using the app factory pattern.

    :param settings_override: Override settings
    :return: Flask app
    """
    app = Flask(__name__, static_folder=None)

    app.config.from_object("config.settings")

    if settings_override:
        app.config.update(settings_override)

    app.config.setdefault(
        "START_TIME", datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    )

    if not app.testing:
        setup_logging(app)

    app.register_blueprint(up)
    app.register_blueprint(api)
    app.register_blueprint(page)

    extensions(app)
    middleware(app)

    return app


def extensions(app):
    """
    Register 0 or more extensions (mutates the app passed in).

    :param app: Flask application instance
    :return: None
    """
    ObservabilityMiddleware(app)
    faults.init_app(app)

    return None


def middleware(app):
    """
    Register 0 or more middleware (mutates the app passed in).

    Must run after the fault extension so ProxyFix sees requests before
    any delay is injected.

    :param app: Flask application instance
    :return: None
    """
    # Enable the Flask interactive debugger in the browser for development.
    if app.debug:
        app.wsgi_app = DebuggedApplication(app.wsgi_app, evalex=True)

    # Set the real IP address into request.remote_addr when behind a proxy.
    app.wsgi_app = ProxyFix(app.wsgi_app)

    return None

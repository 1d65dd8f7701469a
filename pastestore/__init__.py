from __future__ import annotations

import os

from flask import Flask
from flask_cors import CORS

from .config import get_config
from .observability import init_observability
from .store import KeyValueStore, init_store
from .api.pages import pages_bp
from .api.pastes import api_bp


def create_app(
    env_name: str | None = None,
    store: KeyValueStore | None = None,
) -> Flask:
    """
    Application factory for the paste service.

    The configuration is selected based on the provided ``env_name`` or,
    if not given, the ``APP_ENV`` environment variable (falling back to
    ``development``). ``store`` replaces the Redis-backed store, e.g. with
    an in-memory double in tests.
    """
    if env_name is None:
        env_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__)
    app_config = get_config(env_name)
    app.config.from_object(app_config)

    CORS(
        app
    )

    # Initialize infrastructure layers
    init_store(app, store)
    init_observability(app)

    # Register blueprints
    app.register_blueprint(api_bp)
    app.register_blueprint(pages_bp)

    return app

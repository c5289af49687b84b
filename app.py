import os
import logging
from flask import Flask

from models import db
from constants import (
    DEFAULT_POOL_CHECK_DEBOUNCE_SECONDS, DEFAULT_PROCESSED_GAME_TTL_SECONDS,
    DEFAULT_PROCESSED_GAME_MAX_ENTRIES, DEFAULT_STORE_RETRY_ATTEMPTS,
    DEFAULT_STORE_RETRY_DELAY_SECONDS, DEFAULT_STANDINGS_CACHE_TTL_SECONDS
)
from bracketflow.services.utils.service_container import ServiceContainer

# Import blueprints
from routes.blueprints import api_bp

# --- Configuration ---
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
DATA_DIR = os.path.join(BASE_DIR, 'data')

# config key -> (environment variable, type)
ENV_OVERRIDES = {
    'SQLALCHEMY_DATABASE_URI': ('BRACKETFLOW_DATABASE_URI', str),
    'POOL_CHECK_DEBOUNCE_SECONDS': ('BRACKETFLOW_POOL_CHECK_DEBOUNCE_SECONDS', float),
    'PROCESSED_GAME_TTL_SECONDS': ('BRACKETFLOW_PROCESSED_GAME_TTL_SECONDS', float),
    'PROCESSED_GAME_MAX_ENTRIES': ('BRACKETFLOW_PROCESSED_GAME_MAX_ENTRIES', int),
    'STORE_RETRY_ATTEMPTS': ('BRACKETFLOW_STORE_RETRY_ATTEMPTS', int),
    'STORE_RETRY_DELAY_SECONDS': ('BRACKETFLOW_STORE_RETRY_DELAY_SECONDS', float),
    'STANDINGS_CACHE_TTL_SECONDS': ('BRACKETFLOW_STANDINGS_CACHE_TTL_SECONDS', int),
    'LOG_LEVEL': ('BRACKETFLOW_LOG_LEVEL', str),
}


def create_app(test_config=None):
    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{os.path.join(DATA_DIR, "bracketflow.db")}'
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['POOL_CHECK_DEBOUNCE_SECONDS'] = DEFAULT_POOL_CHECK_DEBOUNCE_SECONDS
    app.config['PROCESSED_GAME_TTL_SECONDS'] = DEFAULT_PROCESSED_GAME_TTL_SECONDS
    app.config['PROCESSED_GAME_MAX_ENTRIES'] = DEFAULT_PROCESSED_GAME_MAX_ENTRIES
    app.config['STORE_RETRY_ATTEMPTS'] = DEFAULT_STORE_RETRY_ATTEMPTS
    app.config['STORE_RETRY_DELAY_SECONDS'] = DEFAULT_STORE_RETRY_DELAY_SECONDS
    app.config['STANDINGS_CACHE_TTL_SECONDS'] = DEFAULT_STANDINGS_CACHE_TTL_SECONDS
    app.config['DEBOUNCE_CLOCK'] = None
    app.config['DEBOUNCE_TIMER_FACTORY'] = None
    app.config['LOG_LEVEL'] = 'INFO'
    app.config['BASE_DIR'] = BASE_DIR

    for key, (env_name, cast) in ENV_OVERRIDES.items():
        if env_name in os.environ:
            app.config[key] = cast(os.environ[env_name])

    if test_config is not None:
        app.config.update(test_config)

    logging.basicConfig(
        level=getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    db.init_app(app)

    # Register Blueprints
    app.register_blueprint(api_bp)

    container = ServiceContainer(app.config, app=app)
    container.initialize()
    app.extensions['bracketflow'] = container

    # --- CLI commands for DB ---
    @app.cli.command("init-db")
    def init_db_command():
        """Initializes the database tables."""
        _init_db_tables()
        print("Initialized the database tables.")

    def _init_db_tables():
        """Helper function to create database tables and the sqlite directory."""
        uri = app.config['SQLALCHEMY_DATABASE_URI']
        if uri.startswith('sqlite:///'):
            db_dir = os.path.dirname(uri.replace('sqlite:///', ''))
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir)
                app.logger.info(f"Created database directory: {db_dir}")
        with app.app_context():
            db.create_all()
        app.logger.info("Database tables created.")

    # Tables are created on startup for convenience during development;
    # `flask init-db` is preferred before the first production run.
    _init_db_tables()

    return app


if __name__ == '__main__':
    create_app().run(debug=True)

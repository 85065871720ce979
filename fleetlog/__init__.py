import logging
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from dotenv import load_dotenv

db = SQLAlchemy()

log = logging.getLogger("fleetlog")


def create_app(test_config=None):
    load_dotenv()
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret")
    # no DATABASE_URL means local mode
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL") or None
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["LOCAL_STORE_PATH"] = os.getenv("LOCAL_STORE_PATH")
    app.config["DEFAULT_ADMIN_USERNAME"] = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
    app.config["DEFAULT_ADMIN_PASSWORD"] = os.getenv("DEFAULT_ADMIN_PASSWORD", "password123")
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO")
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    from .errors import BackendUnavailable, register_error_handlers
    from .seed import ensure_admin_exists
    from .store import select_store

    store = select_store(app)
    with app.app_context():
        try:
            ensure_admin_exists(
                store,
                app.config["DEFAULT_ADMIN_USERNAME"],
                app.config["DEFAULT_ADMIN_PASSWORD"],
            )
        except BackendUnavailable:
            log.exception("Could not seed the default admin")

    register_error_handlers(app)

    with app.app_context():
        from .auth import auth_bp
        from .trips import trips_bp
        from .admin import admin_bp
        from .main import main_bp

        app.register_blueprint(auth_bp)
        app.register_blueprint(trips_bp)
        app.register_blueprint(admin_bp)
        app.register_blueprint(main_bp)

    return app

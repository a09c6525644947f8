from flask import Flask, render_template
from config import Config
from sportstock.extensions import db, bcrypt, login_manager, migrate
from sportstock.log import configure_logging


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    # Extensions
    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    # Models must be imported before create_all
    from sportstock import models  # noqa: F401

    from sportstock.services.session_service import SessionManager
    from sportstock.services.sweeper import RequestSweeper
    from sportstock.services.view_cache import ViewCache
    SessionManager(app)
    ViewCache(app)
    app.extensions['request_sweeper'] = RequestSweeper.from_config(app.config)

    # Blueprints
    from sportstock.routes.auth import auth as auth_blueprint
    app.register_blueprint(auth_blueprint)

    from sportstock.routes.main import main as main_blueprint
    app.register_blueprint(main_blueprint)

    from sportstock.routes.admin import admin as admin_blueprint
    app.register_blueprint(admin_blueprint, url_prefix='/admin')

    register_error_handlers(app)

    from sportstock.cli import register_commands
    register_commands(app)

    return app


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(error):
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error("Unhandled error: %s", getattr(error, "original_exception", error))
        return render_template('errors/500.html'), 500

import logging
import logging.config

from flask import Flask, jsonify
from config import Config, logging_config
from extensions import db, login_manager
from services.errors import RegistrarError

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.config.dictConfig(logging_config(app.config["LOG_LEVEL"]))

    # init extentions
    db.init_app(app)
    login_manager.init_app(app)

    import models  # noqa: F401  (register every mapper before first use)
    from models.user import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify(error="not_authenticated", message="Log in first."), 401

    @app.errorhandler(RegistrarError)
    def handle_registrar_error(err):
        if err.status_code >= 500:
            logger.error("%s: %s", err.error_code, err.message)
        return jsonify(err.to_dict()), err.status_code

    # import and register blueprints
    from auth.routes import auth_bp
    from routes import main_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)

    return app


if __name__ == "__main__":
    create_app().run(debug=True)

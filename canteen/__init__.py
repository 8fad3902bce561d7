from flask import Flask, jsonify
from flask_smorest import Api
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_mail import Mail
from flask_cors import CORS

import os

db = SQLAlchemy()
migrate = Migrate()
mail = Mail()
jwt = JWTManager()


def create_app(config_name=None):

    from .config import config

    config_name = config_name or os.getenv('CANTEEN_ENV', 'default')
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)
    jwt.init_app(app)
    CORS(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True)

    from .controllers.auth import blp as AuthBlp
    from .controllers.menu import blp as MenuBlp
    from .controllers.orders import blp as OrdersBlp
    from .services.logout import is_token_revoked
    from .middleware import init_middleware, error_response
    from .celery_config import make_celery


    @jwt.token_in_blocklist_loader
    def check_if_token_in_blocklist(jwt_header, jwt_payload):
        return is_token_revoked(jwt_payload)


    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response(401, "token_expired", "The token has expired.")


    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response(401, "invalid_token", "Signature verification failed.")


    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response(401, "authorization_required",
                              "Request doesn't contain an access token.")


    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        return error_response(401, "token_revoked", "The token has been revoked.")


    api = Api(app)
    api.register_blueprint(AuthBlp)
    api.register_blueprint(MenuBlp)
    api.register_blueprint(OrdersBlp)

    # Registered after Api so these handlers replace flask-smorest's own
    init_middleware(app)

    app.extensions['celery'] = make_celery(app)


    @app.route('/')
    def home():
        return jsonify({"message": "Welcome to the Campus Canteen API!"})


    with app.app_context():
        from . import models  # noqa: F401
        db.create_all()

    return app

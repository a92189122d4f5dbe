import logging

from flask import Flask, jsonify
from .db import db
from .errors import ChatServiceError
from .models import init_db
from .routes.chat import chat_bp
from .routes.settings import settings_bp
from .services import EXTENSION_KEY, build_services
from config import Config


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'WARNING'))

    db.init_app(app)
    with app.app_context():
        init_db()

    app.extensions[EXTENSION_KEY] = build_services(app.config)

    @app.errorhandler(ChatServiceError)
    def handle_chat_error(e: ChatServiceError):
        return jsonify({"error": e.message}), e.status_code

    app.register_blueprint(chat_bp, url_prefix='/api/chat')
    app.register_blueprint(settings_bp, url_prefix='/settings')

    return app

import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_socketio import SocketIO
from dotenv import load_dotenv

load_dotenv()

from homepro.config import get_config  # noqa: E402

db = SQLAlchemy()
limiter = Limiter(key_func=get_remote_address)
socketio = SocketIO()


def _configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    app.logger.setLevel(level)


def create_app(config_name=None):
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    limiter.init_app(app)
    CORS(app, origins=app.config['CORS_ORIGINS'])
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['CORS_ORIGINS'],
        message_queue=app.config.get('SOCKETIO_MESSAGE_QUEUE'),
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE')
    )

    # Import models so create_all sees every table
    from homepro import models  # noqa: F401

    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            app.logger.warning(f"Could not create database tables: {e}")

    from homepro.routes import register_routes
    register_routes(app)

    from homepro.socket_events import register_socket_events
    register_socket_events(socketio)

    @app.route('/health', methods=['GET'])
    def health():
        return {'status': 'ok'}, 200

    return app

from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Each app owns its registry; a fresh app starts with no rooms
    from townsquare.rooms import RoomCoordinator
    flask_app.extensions['townsquare'] = RoomCoordinator()

    from townsquare.main import main
    flask_app.register_blueprint(main)

    from townsquare.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    return flask_app


def get_coordinator():
    """Return the room coordinator of the active app."""
    return current_app.extensions['townsquare']

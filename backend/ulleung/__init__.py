from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def _origins(value):
    if isinstance(value, str) and value != '*':
        return [o.strip() for o in value.split(',') if o.strip()]
    return value


def create_app(config_class=Config, scheduler=None, rng=None):
    flask_app = Flask(__name__, static_folder=None)
    flask_app.config.from_object(config_class)

    allowed_origins = _origins(flask_app.config.get('CORS_ORIGINS', '*'))
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins, ping_timeout=60, ping_interval=25)

    # One in-memory lobby per app; tests inject a manual scheduler
    from ulleung.broadcaster import SocketIOBroadcaster
    from ulleung.lobby import Lobby
    from ulleung.services.games.scheduler import BackgroundScheduler
    broadcaster = SocketIOBroadcaster(socketio, namespace=namespace)
    if scheduler is None:
        scheduler = BackgroundScheduler(socketio)
    flask_app.extensions['ulleung'] = Lobby(flask_app.config, broadcaster, scheduler, rng=rng)

    from ulleung.main import main
    flask_app.register_blueprint(main)

    # Importing here ensures the handlers bind to the initialized socketio instance
    from ulleung.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    @click.command('serve')
    @click.option('--host', default='0.0.0.0', show_default=True)
    @click.option('--port', default=3000, show_default=True, type=int)
    @click.option('--debug', is_flag=True, default=False)
    def serve_command(host, port, debug):
        """Runs the game server with WebSocket support."""
        flask_app.logger.info(f"[serve] host={host} port={port} client={flask_app.config.get('CLIENT_DIR')}")
        socketio.run(flask_app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)

    flask_app.cli.add_command(serve_command)

    return flask_app

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

SOCKET_NAMESPACE = '/ws'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from gamemaster.errors import GameMasterError
    from gamemaster.services.rooms import EXTENSION_KEY
    from gamemaster.services.rooms.broadcast import BroadcastRouter
    from gamemaster.services.rooms.coordinator import RoomCoordinator
    from gamemaster.services.rooms.presence import PresenceTracker
    from gamemaster.services.rooms.store import RoomStore
    from gamemaster.services.rooms.ticker import TickScheduler

    cfg = flask_app.config
    store = RoomStore(flask_app)
    router = BroadcastRouter(socketio, namespace=SOCKET_NAMESPACE, logger=flask_app.logger)
    presence = PresenceTracker(router, logger=flask_app.logger)
    coordinator = RoomCoordinator(
        store, router, presence,
        room_count=int(cfg.get('ROOM_COUNT', 5)),
        default_duration=int(cfg.get('DEFAULT_ROOM_DURATION_SEC', 3600)),
        default_free_hints=int(cfg.get('DEFAULT_FREE_HINTS', 3)),
        hint_penalty=int(cfg.get('HINT_PENALTY_SEC', 120)),
        default_language=cfg.get('DEFAULT_LANGUAGE', 'es'),
        logger=flask_app.logger,
    )
    ticker = TickScheduler(flask_app, coordinator, socketio, interval=float(cfg.get('TICK_INTERVAL_SEC', 1.0)))
    flask_app.extensions[EXTENSION_KEY] = {
        'store': store,
        'router': router,
        'presence': presence,
        'coordinator': coordinator,
        'ticker': ticker,
    }

    @flask_app.errorhandler(GameMasterError)
    def handle_game_master_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    from gamemaster.main import main
    flask_app.register_blueprint(main)

    from gamemaster.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from gamemaster.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the default rooms."""
        import gamemaster.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            coordinator.load()
            click.echo(f"Database has been reset and seeded with {coordinator.room_count} rooms!")

    flask_app.cli.add_command(db_reset_command)

    return flask_app

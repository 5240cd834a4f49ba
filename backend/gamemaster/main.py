from flask import Blueprint, current_app, jsonify

from gamemaster.services.rooms import get_services
from gamemaster.services.rooms.broadcast import utc_timestamp

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Game Master server!'})


@main.route('/api/health')
def health():
    connected = get_services()['store'].ping()
    return jsonify({
        'status': 'ok',
        'timestamp': utc_timestamp(),
        'database': 'connected' if connected else 'disconnected',
    })


@main.route('/api/config')
def client_config():
    """Read-only constants the console and display clients render with."""
    cfg = current_app.config
    return jsonify({
        'obligatoryLanguages': list(cfg.get('OBLIGATORY_LANGUAGES', ['es', 'en'])),
        'defaultLanguage': cfg.get('DEFAULT_LANGUAGE', 'es'),
        'defaultFreeHints': int(cfg.get('DEFAULT_FREE_HINTS', 3)),
        'hintPenaltySeconds': int(cfg.get('HINT_PENALTY_SEC', 120)),
        'defaultRoomDuration': int(cfg.get('DEFAULT_ROOM_DURATION_SEC', 3600)),
    })

from flask import Blueprint, jsonify, request

from gamemaster.errors import ValidationError
from gamemaster.services.rooms import get_services
from gamemaster.services.rooms.broadcast import utc_timestamp
from gamemaster.services.rooms.coordinator import parse_hint_ref, parse_payload


rooms = Blueprint('rooms', __name__)


def _coordinator():
    return get_services()['coordinator']


@rooms.route('/rooms', methods=['GET'])
def list_rooms():
    return jsonify([s.to_dict() for s in _coordinator().list_rooms()])


@rooms.route('/rooms/<int:room_id>', methods=['GET'])
def get_room(room_id):
    return jsonify(_coordinator().get_room(room_id).to_dict())


@rooms.route('/rooms/<int:room_id>/name', methods=['PUT'])
def rename_room(room_id):
    data = parse_payload(request.get_json(silent=True))
    return jsonify(_coordinator().rename_room(room_id, data.get('name')).to_dict())


@rooms.route('/rooms/<int:room_id>/timer', methods=['POST'])
def start_stop(room_id):
    data = parse_payload(request.get_json(silent=True))
    if not isinstance(data.get('running'), bool):
        raise ValidationError('running must be true or false')
    return jsonify(_coordinator().start_stop(room_id, data['running']).to_dict())


@rooms.route('/rooms/<int:room_id>/reset', methods=['POST'])
def reset_room(room_id):
    return jsonify(_coordinator().reset_room(room_id).to_dict())


@rooms.route('/rooms/<int:room_id>/hints/send', methods=['POST'])
def send_hint(room_id):
    data = parse_payload(request.get_json(silent=True))
    result = _coordinator().send_hint(room_id, parse_hint_ref(data.get('hintId')), data.get('hint'), data.get('language'))
    return jsonify({
        'room': result.session.to_dict(),
        'outcome': result.outcome,
        'timePenaltyApplied': result.time_penalty_applied,
    })


@rooms.route('/rooms/<int:room_id>/messages/send', methods=['POST'])
def send_message(room_id):
    data = parse_payload(request.get_json(silent=True))
    return jsonify(_coordinator().send_message(room_id, data.get('message'), data.get('language')).to_dict())


@rooms.route('/rooms/<int:room_id>/hint-history', methods=['GET'])
def hint_history(room_id):
    return jsonify(_coordinator().get_hint_history(room_id))


@rooms.route('/rooms/<int:room_id>/hint-history', methods=['DELETE'])
def clear_hint_history(room_id):
    cleared = _coordinator().clear_hint_history(room_id)
    return jsonify({'success': True, 'cleared': cleared})


@rooms.route('/chromecast-status/<int:room_id>', methods=['GET'])
def chromecast_status(room_id):
    """Polling fallback for the chromecast-status-change push event."""
    status = _coordinator().display_status(room_id)
    status.update({
        'casting': status['connected'],
        'roomId': room_id,
        'timestamp': utc_timestamp(),
    })
    return jsonify(status)


@rooms.route('/analytics/hints', methods=['GET'])
def hint_analytics():
    room_id = request.args.get('roomId', type=int)
    days = request.args.get('days', default=30, type=int)
    if days is None or days <= 0:
        raise ValidationError('days must be a positive integer')
    stats = get_services()['store'].hint_usage_stats(room_id=room_id, days=days)
    return jsonify(stats)

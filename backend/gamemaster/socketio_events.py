from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from gamemaster import socketio, SOCKET_NAMESPACE
from gamemaster.errors import GameMasterError, PresenceConflict
from gamemaster.services.rooms import get_services
from gamemaster.services.rooms.broadcast import room_channel, utc_timestamp
from gamemaster.services.rooms.coordinator import parse_hint_ref, parse_payload, parse_room_id


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _emit_error(exc: GameMasterError, event: str = 'error', **extra) -> None:
    payload = exc.to_dict()
    payload['message'] = exc.message
    payload.update(extra)
    emit(event, payload)


def handle_connect(auth=None):
    services = get_services()
    services['presence'].connect(_get_sid())
    try:
        snapshot = [s.to_dict() for s in services['coordinator'].list_rooms()]
    except GameMasterError as exc:
        current_app.logger.error(f"[connect] sid={_get_sid()} initial state unavailable: {exc.message}")
        snapshot = []
    emit('initial-state', {'rooms': snapshot})


def handle_disconnect(reason=None):
    get_services()['presence'].disconnect(_get_sid())


def _join(data, role: str) -> None:
    services = get_services()
    try:
        room_id = parse_room_id(data)
        services['coordinator'].get_room(room_id)
    except GameMasterError as exc:
        _emit_error(exc)
        return
    presence = services['presence']
    join = presence.join_as_console if role == 'console' else presence.join_as_display
    previous = join(_get_sid(), room_id)
    if previous is not None and previous != room_id:
        leave_room(room_channel(previous))
    join_room(room_channel(room_id))
    emit('joined', {'room': room_channel(room_id), 'roomId': room_id, 'role': role})


def handle_join_as_console(data):
    _join(data, 'console')


def handle_join_as_display(data):
    _join(data, 'display')


def handle_cast_status_update(data):
    try:
        data = parse_payload(data)
        get_services()['presence'].set_cast_status(
            _get_sid(),
            bool(data.get('isCasting')),
            detection_method=data.get('detectionMethod'),
            timestamp=data.get('timestamp'),
        )
    except PresenceConflict as exc:
        current_app.logger.warning(f"[presence] ignored cast-status-update: {exc.message}")
    except GameMasterError as exc:
        _emit_error(exc)


def handle_update_room(data):
    try:
        get_services()['coordinator'].update_room(parse_room_id(data), data)
    except GameMasterError as exc:
        _emit_error(exc)


def handle_send_hint(data):
    room_ref = data.get('roomId') if isinstance(data, dict) else None
    hint_id = None
    try:
        data = parse_payload(data)
        hint_id = parse_hint_ref(data.get('hintId'))
        room_id = parse_room_id(data)
        get_services()['coordinator'].send_hint(room_id, hint_id, data.get('hint'), data.get('language'))
    except GameMasterError as exc:
        _emit_error(exc, 'hint-error', roomId=room_ref, hintId=hint_id)
        return
    # Acknowledge to the sender only
    emit('hint-ack', {'roomId': room_id, 'hintId': hint_id, 'success': True, 'timestamp': utc_timestamp()})


def handle_send_message(data):
    try:
        data = parse_payload(data)
        room_id = parse_room_id(data)
        get_services()['coordinator'].send_message(room_id, data.get('message'), data.get('language'))
    except GameMasterError as exc:
        _emit_error(exc)


def handle_reset_room(data):
    try:
        get_services()['coordinator'].reset_room(parse_room_id(data))
    except GameMasterError as exc:
        _emit_error(exc)


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=SOCKET_NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=SOCKET_NAMESPACE)
    socketio.on_event('join-as-console', handle_join_as_console, namespace=SOCKET_NAMESPACE)
    socketio.on_event('join-as-display', handle_join_as_display, namespace=SOCKET_NAMESPACE)
    socketio.on_event('cast-status-update', handle_cast_status_update, namespace=SOCKET_NAMESPACE)
    socketio.on_event('update-room', handle_update_room, namespace=SOCKET_NAMESPACE)
    socketio.on_event('send-hint', handle_send_hint, namespace=SOCKET_NAMESPACE)
    socketio.on_event('send-message', handle_send_message, namespace=SOCKET_NAMESPACE)
    socketio.on_event('reset-room', handle_reset_room, namespace=SOCKET_NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=SOCKET_NAMESPACE)

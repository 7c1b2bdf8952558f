from flask_socketio import join_room, leave_room, emit
from flask import current_app
from compsync import socketio
from compsync.api.broadcast import round_store
from compsync.services.rounds.store import MAX_ROOM_ID_LENGTH, normalize_room_id, socket_room


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_subscribe(data):
    """Join a room's channel and hand over its current descriptor at once.

    The store keeps state, not events: a display joining mid-round gets the
    same descriptor everyone else has and works out the phase on its own clock.
    """
    room_id = (data or {}).get('roomId')
    if not isinstance(room_id, str) or not room_id.strip():
        emit('error', {'message': 'roomId is required'})
        return
    if len(room_id.strip()) > MAX_ROOM_ID_LENGTH:
        emit('error', {'message': f'roomId must be at most {MAX_ROOM_ID_LENGTH} characters'})
        return
    key = normalize_room_id(room_id)
    join_room(socket_room(key))
    descriptor = round_store().get(key)
    current_app.logger.info(f"[subscribe] room={key} has_round={descriptor is not None}")
    emit('round', {'roomId': key, 'round': descriptor.to_dict() if descriptor else None})


def handle_unsubscribe(data):
    room_id = (data or {}).get('roomId')
    if not isinstance(room_id, str) or not room_id.strip():
        emit('error', {'message': 'roomId is required'})
        return
    leave_room(socket_room(room_id))
    emit('unsubscribed', {'roomId': normalize_room_id(room_id)})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('subscribe', handle_subscribe, namespace='/ws')
    socketio.on_event('unsubscribe', handle_unsubscribe, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('subscribe', handle_subscribe, namespace='/')
        socketio.on_event('unsubscribe', handle_unsubscribe, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')

from flask import Blueprint, jsonify, request, current_app
from compsync import bcrypt
from compsync.errors import ConfigError, RoundNotFound
from compsync.services.rounds.broadcast import BroadcastController
from compsync.services.rounds.descriptor import RoundConfig
from compsync.services.rounds.store import MAX_ROOM_ID_LENGTH, SqlRoundStore, normalize_room_id
from compsync.timeutil import to_iso


broadcast = Blueprint('broadcast', __name__)

MESSAGE_TYPES = ('START', 'STOP', 'RESET')


def round_store() -> SqlRoundStore:
    store = current_app.extensions.get('round_store')
    if store is None:
        store = current_app.extensions['round_store'] = SqlRoundStore()
    return store


def _controller() -> BroadcastController:
    return BroadcastController(
        round_store(),
        lead_ms=int(current_app.config.get('ROUND_LEAD_MS', 3000)),
        logger=current_app.logger,
    )


def _pin_ok(pin) -> bool:
    pin_hash = current_app.config.get('ADMIN_PIN_HASH')
    if not pin_hash:
        return True
    if not pin:
        return False
    return bcrypt.check_password_hash(pin_hash, str(pin))


def _round_config(data: dict) -> RoundConfig:
    cfg = current_app.config
    return RoundConfig(
        climbing_duration_ms=data.get('climbingDurationMs', int(cfg.get('DEFAULT_CLIMBING_MS', 300000))),
        preparation_duration_ms=data.get('preparationDurationMs', int(cfg.get('DEFAULT_PREPARATION_MS', 60000))),
        preparation_enabled=data.get('preparationEnabled', False),
        recurring=data.get('recurring', False),
    )


@broadcast.route('/auth', methods=['POST'])
def check_pin():
    data = request.get_json(silent=True) or {}
    if _pin_ok(data.get('pin')):
        return jsonify({'ok': True})
    return jsonify({'error': 'Incorrect PIN'}), 401


@broadcast.route('/broadcast', methods=['POST'])
def broadcast_message():
    if not _pin_ok(request.headers.get('X-Admin-Pin')):
        return jsonify({'error': 'Incorrect PIN'}), 401

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Expected a JSON object'}), 400
    message_type = data.get('type')
    room_id = data.get('roomId')
    if not message_type or not isinstance(room_id, str) or not room_id.strip():
        return jsonify({'error': 'Missing type or roomId'}), 400
    if len(room_id.strip()) > MAX_ROOM_ID_LENGTH:
        return jsonify({'error': f'roomId must be at most {MAX_ROOM_ID_LENGTH} characters'}), 400
    if message_type not in MESSAGE_TYPES:
        return jsonify({'error': f'Unknown type {message_type!r}'}), 400

    controller = _controller()

    if message_type == 'START':
        try:
            config = _round_config(data)
        except ConfigError as exc:
            return jsonify({'error': str(exc)}), 400
        descriptor = controller.start(room_id, config)
        return jsonify({'ok': True, 'startTime': to_iso(descriptor.start_time)})

    if message_type == 'STOP':
        try:
            controller.stop(room_id)
        except RoundNotFound as exc:
            return jsonify({'error': str(exc)}), 404
        return jsonify({'ok': True})

    controller.reset(room_id)
    return jsonify({'ok': True})


@broadcast.route('/rooms/<string:room_id>', methods=['GET'])
def get_round(room_id):
    # Current descriptor snapshot for clients that poll instead of subscribing
    descriptor = round_store().get(room_id)
    return jsonify({
        'roomId': normalize_room_id(room_id),
        'round': descriptor.to_dict() if descriptor else None,
    })

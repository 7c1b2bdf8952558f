from flask import Blueprint, jsonify
from compsync.timeutil import now_ms

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the CompSync timer server!'})

@main.route('/api/time', methods=['GET'])
def server_time():
    # Authoritative clock for display calibration
    return jsonify({'serverTime': now_ms()})

from flask import Blueprint, jsonify
from townsquare import get_coordinator

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the townsquare room server!'})

@main.route('/api/rooms', methods=['GET'])
def list_rooms():
    return jsonify(get_coordinator().room_names()), 200

@main.route('/api/rooms/<string:room>', methods=['GET'])
def get_room(room):
    """
    Returns the public view of a room: host presence, seat names and the
    last game state the host sent.
    """
    summary = get_coordinator().room_summary(room)
    if summary is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(summary), 200

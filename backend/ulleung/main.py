import os

from flask import Blueprint, current_app, jsonify, redirect, request, send_from_directory

main = Blueprint('main', __name__)


def _client_dir() -> str:
    return os.path.abspath(current_app.config.get('CLIENT_DIR') or 'client')


def _lobby():
    return current_app.extensions['ulleung']


@main.route('/')
def index():
    return send_from_directory(_client_dir(), 'index.html')


@main.route('/ulleung')
@main.route('/ulleung/')
def ulleung_landing():
    return redirect('/ulleung/room.html')


@main.route('/health')
def health():
    lobby = _lobby()
    with lobby.lock:
        return jsonify({'status': 'ok', 'rooms': len(lobby.registry)})


@main.route('/api/rooms')
def list_rooms():
    lobby = _lobby()
    with lobby.lock:
        return jsonify(lobby.registry.list_active())


@main.route('/<path:filename>')
def client_file(filename):
    return send_from_directory(_client_dir(), filename)


@main.app_errorhandler(404)
def not_found(error):
    index_path = os.path.join(_client_dir(), 'index.html')
    if request.accept_mimetypes.accept_html and os.path.isfile(index_path):
        return send_from_directory(_client_dir(), 'index.html'), 404
    return jsonify({'error': 'Not Found'}), 404

from flask import current_app, request
from flask_socketio import ConnectionRefusedError, emit

from blocker import socketio

NAMESPACE = '/ws'


def handle_connect(auth=None):
    key = (auth or {}).get('key') or request.args.get('key')
    if key != current_app.config.get('API_KEY'):
        raise ConnectionRefusedError('Key mismatch, retrying will not help')
    session = current_app.extensions['blocker.session']
    registry = current_app.extensions['blocker.registry']
    emit('session_update', session.snapshot().to_dict())
    emit('targets_update', {'users': [t.to_dict() for t in registry.list()]})


def handle_ping(data):
    emit('pong', data or {})


def broadcast_session(snapshot) -> None:
    # Called from the session loop, outside any request context
    socketio.emit('session_update', snapshot.to_dict(), namespace=NAMESPACE)


def broadcast_targets(targets) -> None:
    socketio.emit('targets_update', {'users': [t.to_dict() for t in targets]}, namespace=NAMESPACE)


def register_socketio_handlers() -> None:
    """Register the operator status feed on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)

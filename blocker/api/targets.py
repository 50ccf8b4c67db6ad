from flask import Blueprint, jsonify, request, current_app
from werkzeug.exceptions import MethodNotAllowed, NotFound

from blocker.errors import BlockerError, InvalidInput, Unauthorized
from blocker.identity import parse_account_id


targets = Blueprint('targets', __name__)


def _registry():
    return current_app.extensions['blocker.registry']


@targets.before_app_request
def require_key():
    # Runs before routing errors are raised, so unknown routes are gated too
    if request.args.get('key') != current_app.config.get('API_KEY'):
        raise Unauthorized("Key mismatch, retrying will not help")
    _registry().evict()


@targets.app_errorhandler(BlockerError)
def handle_blocker_error(exc):
    current_app.logger.info(f"[api] {request.path} rejected status={exc.status_code}: {exc}")
    return jsonify(exc.to_dict()), exc.status_code


@targets.app_errorhandler(NotFound)
@targets.app_errorhandler(MethodNotAllowed)
def handle_unknown_route(exc):
    return jsonify({'error': 'Invalid request, view code for more information'}), 400


@targets.route('/list', methods=['GET'])
def list_targets():
    return jsonify({
        'success': True,
        'users': [t.to_dict() for t in _registry().list()],
    })


@targets.route('/add', methods=['GET'])
def add_target():
    raw_id = request.args.get('id')
    raw_length = request.args.get('length')
    if not raw_id:
        return jsonify({'error': "Request is missing 'id' parameter"}), 400
    if not raw_length:
        return jsonify({'error': "Request is missing 'length' parameter"}), 400

    account_id = parse_account_id(raw_id)
    registry = _registry()
    try:
        length = int(raw_length)
    except ValueError:
        raise InvalidInput(
            f"Input length is invalid, it must be between 1 and {registry.max_ttl} inclusive"
        )

    result = registry.add(account_id, length)
    current_app.logger.info(f"[api] add target={account_id} length={length}s created={result.created}")
    return jsonify({
        'success': result.created,
        'expiresAt': result.expires_at,
    })


@targets.route('/remove', methods=['GET'])
def remove_target():
    raw_id = request.args.get('id')
    if not raw_id:
        return jsonify({'error': "Request is missing 'id' parameter"}), 400

    account_id = parse_account_id(raw_id)
    removed = _registry().remove(account_id)
    current_app.logger.info(f"[api] remove target={account_id} removed={removed}")
    return jsonify({'success': removed})

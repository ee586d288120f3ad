# ballotbox/replication/echo.py

# Stateless echo endpoint: acknowledges synced votes without storing them.
# It must never be read as a source of truth.

import logging
from datetime import datetime, timezone
from flask import Blueprint, jsonify, request

logger = logging.getLogger(__name__)

echo = Blueprint('echo', __name__, url_prefix='/api')


def _now_iso():
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


@echo.after_request
def add_cors_headers(response):
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response


@echo.route('/sync-vote', methods=['GET', 'POST', 'OPTIONS'])
def sync_vote():
    if request.method == 'OPTIONS':
        return '', 200

    if request.method == 'POST':
        vote_data = request.get_json(silent=True)
        if not isinstance(vote_data, dict):
            return jsonify({'success': False, 'error': 'Failed to sync vote'}), 400
        logger.info(f"Received sync from device: {vote_data.get('deviceId')}")
        return jsonify({
            'success': True,
            'message': 'Vote synced successfully',
            'timestamp': _now_iso(),
        })

    # Nothing is kept between calls
    return jsonify({'success': True, 'data': [], 'count': 0, 'timestamp': _now_iso()})

# ballotbox/routes.py

# JSON routes for the voting and admin screens. Every route delegates to an
# ElectionStore built per request; no route keeps state of its own.

from flask import Blueprint, Response, current_app, g, jsonify, request, session
import logging

from ballotbox import create_store
from ballotbox.authentication.rbac import Permission, require_permission
from ballotbox.database.errors import ConstraintViolation, NotFound, StorageUnavailable
from ballotbox.database.outcomes import CastOutcome, ResetOutcome
from ballotbox.operations.backup_manager import BackupError, load_backup, perform_backup
from ballotbox.operations.csv_report import export_csv_summary
from ballotbox.operations.health_monitor import check_database_health
from ballotbox.security.input_validator import InputValidator

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__)
validator = InputValidator()

CAST_STATUS = {
    CastOutcome.SUCCESS: 200,
    CastOutcome.ALREADY_VOTED: 409,
    CastOutcome.VOTER_NOT_FOUND: 404,
    CastOutcome.CANDIDATE_NOT_FOUND: 404,
}

RESET_STATUS = {
    ResetOutcome.SUCCESS: 200,
    ResetOutcome.NOT_VOTED: 200,
    ResetOutcome.VOTER_NOT_FOUND: 404,
    ResetOutcome.FAILED: 503,
}


def get_store():
    if 'election_store' not in g:
        g.election_store = create_store(current_app)
    return g.election_store


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


@api.errorhandler(ValueError)
def handle_bad_request(e):
    return jsonify({'error': str(e)}), 400


@api.errorhandler(NotFound)
def handle_not_found(e):
    return jsonify({'error': str(e)}), 404


@api.errorhandler(ConstraintViolation)
def handle_conflict(e):
    return jsonify({'error': str(e)}), 409


@api.errorhandler(StorageUnavailable)
def handle_storage_unavailable(e):
    logger.error(f"Storage unavailable: {e}")
    return jsonify({'error': 'Something went wrong, please retry.'}), 503


# ------------------------------ Voters ---------------------------------- #

@api.route('/login', methods=['POST'])
def login():
    username = _json_body().get('username')
    if not isinstance(username, str) or not validator.validate_username(username):
        return jsonify({'success': False, 'outcome': 'not_found',
                        'message': 'Invalid username format'}), 400
    result = get_store().validate_login(username)
    status = 404 if result.outcome.value == 'not_found' else 200
    return jsonify(result.to_dict()), status


@api.route('/vote', methods=['POST'])
def vote():
    voter_id, candidate_id = validator.validate_vote_request(_json_body())
    result = get_store().cast_vote(voter_id, candidate_id)
    return jsonify(result.to_dict()), CAST_STATUS[result.outcome]


@api.route('/stats', methods=['GET'])
def stats():
    return jsonify(get_store().get_election_stats())


@api.route('/candidates', methods=['GET'])
def candidates():
    return jsonify([c.to_dict() for c in get_store().get_all_candidates()])


@api.route('/voters/<int:voter_id>/status', methods=['GET'])
def voter_status(voter_id):
    return jsonify(get_store().get_voting_status(voter_id))


# ------------------------------ Admin ----------------------------------- #

@api.route('/admin/login', methods=['POST'])
def admin_login():
    data = _json_body()
    result = get_store().validate_admin_login(data.get('username'), data.get('password'))
    if not result.success:
        return jsonify(result.to_dict()), 401
    session['admin'] = result.admin
    return jsonify(result.to_dict())


@api.route('/admin/logout', methods=['POST'])
def admin_logout():
    session.pop('admin', None)
    return jsonify({'success': True})


@api.route('/admin/reset', methods=['POST'])
@require_permission(Permission.RESET)
def reset_all():
    result = get_store().reset_all_votes()
    return jsonify(result.to_dict()), RESET_STATUS[result.outcome]


@api.route('/admin/reset/<int:voter_id>', methods=['POST'])
@require_permission(Permission.RESET)
def reset_single(voter_id):
    result = get_store().reset_single_vote(voter_id)
    return jsonify(result.to_dict()), RESET_STATUS[result.outcome]


@api.route('/admin/export', methods=['GET'])
@require_permission(Permission.EXPORT)
def export_data():
    return jsonify(get_store().export_voting_data())


@api.route('/admin/export.csv', methods=['GET'])
@require_permission(Permission.EXPORT)
def export_csv():
    csv_text = export_csv_summary(get_store().get_election_stats())
    return Response(csv_text, mimetype='text/csv',
                    headers={'Content-Disposition': 'attachment; filename=election_results.csv'})


@api.route('/admin/backup', methods=['POST'])
@require_permission(Permission.EXPORT)
def backup():
    meta = perform_backup(get_store(), current_app.config['BACKUP_OUTDIR'],
                          current_app.config.get('BACKUP_AES256_KEY'))
    return jsonify(meta), 201


@api.route('/admin/restore', methods=['POST'])
@require_permission(Permission.EDIT)
def restore():
    data = _json_body()
    if 'backup_file' in data:
        try:
            data = load_backup(data['backup_file'], current_app.config.get('BACKUP_AES256_KEY'))
        except (BackupError, OSError) as e:
            return jsonify({'error': str(e)}), 400
    counts = get_store().restore_database(data)
    return jsonify({'success': True, 'restored': counts})


@api.route('/admin/repair', methods=['POST'])
@require_permission(Permission.EDIT)
def repair():
    result = get_store().repair_database()
    return jsonify(result.to_dict()), 200 if result.success else 503


@api.route('/admin/admins', methods=['GET'])
@require_permission(Permission.VIEW)
def list_admins():
    return jsonify([a.to_dict() for a in get_store().get_all_admins()])


@api.route('/admin/admins', methods=['POST'])
@require_permission(Permission.EDIT)
def create_admin():
    admin = get_store().add_admin(validator.validate_admin_data(_json_body()))
    return jsonify(admin), 201


@api.route('/admin/admins/<int:admin_id>', methods=['PUT'])
@require_permission(Permission.EDIT)
def edit_admin(admin_id):
    updates = validator.validate_admin_data(_json_body(), partial=True)
    updates.pop('id', None)
    return jsonify(get_store().update_admin(admin_id, updates))


@api.route('/admin/admins/<int:admin_id>', methods=['DELETE'])
@require_permission(Permission.DELETE)
def remove_admin(admin_id):
    get_store().delete_admin(admin_id)
    return jsonify({'success': True})


@api.route('/admin/audit-logs', methods=['GET'])
@require_permission(Permission.AUDIT)
def audit_logs():
    action = request.args.get('action')
    store = get_store()
    entries = store.get_audit_logs_by_action(action) if action else store.get_all_audit_logs()
    # newest first
    return jsonify([e.to_dict() for e in reversed(entries)])


@api.route('/admin/audit-logs', methods=['DELETE'])
@require_permission(Permission.AUDIT)
def clear_audit_logs():
    removed = get_store().clear_audit_logs()
    return jsonify({'success': True, 'removed': removed})


# ------------------------------ Health ---------------------------------- #

@api.route('/health', methods=['GET'])
def health():
    res = check_database_health(get_store(), current_app.config['MIN_FREE_DISK_GB'])
    return jsonify(res), 200 if res['healthy'] else 503

# routes/notification_routes.py

from flask import Blueprint, request, jsonify
from services.errors import ShareError
from services.notification_service import NotificationService
from utils.security import login_required

notification_bp = Blueprint('notification', __name__)
notification_service = NotificationService()


@notification_bp.errorhandler(ShareError)
def handle_notification_error(error):
    return jsonify({
        'error': error.message,
        'code': error.code
    }), error.status_code


@notification_bp.route('', methods=['GET'])
@login_required
def list_notifications(user):
    limit = min(request.args.get('limit', 20, type=int), 100)
    if limit < 1:
        return jsonify({'error': 'Limit must be >= 1'}), 400
    return jsonify(notification_service.list_for_user(user.id, limit=limit)), 200


@notification_bp.route('/<int:notification_id>/read', methods=['POST'])
@login_required
def mark_notification_read(user, notification_id):
    notification_service.mark_as_read(user.id, notification_id)
    return jsonify({'success': True}), 200


@notification_bp.route('/read-all', methods=['POST'])
@login_required
def mark_all_notifications_read(user):
    updated = notification_service.mark_all_as_read(user.id)
    return jsonify({'success': True, 'updated': updated}), 200

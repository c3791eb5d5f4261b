"""In-app notification inbox."""

from datetime import datetime

from flask import Blueprint, request, jsonify
from homepro import db
from homepro.models import Notification
from homepro.utils import token_required

notifications_bp = Blueprint('notifications', __name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _unread(user_id):
    return Notification.query.filter_by(user_id=user_id, is_read=False)


@notifications_bp.route('', methods=['GET'])
@token_required
def list_notifications(current_user_id):
    """The caller's inbox, newest first.

    Query params:
        unread_only: 'true' to skip read notifications
        type: only notifications of this type
        page, per_page: pagination (per_page capped at 100)
    """
    page = max(request.args.get('page', 1, type=int), 1)
    per_page = request.args.get('per_page', DEFAULT_PAGE_SIZE, type=int)
    per_page = min(max(per_page, 1), MAX_PAGE_SIZE)

    if request.args.get('unread_only', 'false').lower() == 'true':
        query = _unread(current_user_id)
    else:
        query = Notification.query.filter_by(user_id=current_user_id)

    notification_type = request.args.get('type')
    if notification_type:
        query = query.filter_by(type=notification_type)

    result = query.order_by(
        Notification.created_at.desc(), Notification.id.desc()
    ).paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'notifications': [n.to_dict() for n in result.items],
        'total': result.total,
        'page': page,
        'per_page': per_page,
        'has_more': result.has_next,
        'unread_count': _unread(current_user_id).count()
    }), 200


@notifications_bp.route('/unread-count', methods=['GET'])
@token_required
def unread_count(current_user_id):
    return jsonify({'unread_count': _unread(current_user_id).count()}), 200


@notifications_bp.route('/<int:notification_id>/read', methods=['POST'])
@token_required
def mark_read(current_user_id, notification_id):
    notification = db.session.get(Notification, notification_id)
    if not notification:
        return jsonify({'error': 'Notification not found'}), 404

    if notification.user_id != current_user_id:
        return jsonify({'error': 'Unauthorized'}), 403

    # Reading twice keeps the first read time
    if not notification.is_read:
        notification.mark_as_read()
        db.session.commit()

    return jsonify({'notification': notification.to_dict()}), 200


@notifications_bp.route('/read-all', methods=['POST'])
@token_required
def mark_all_read(current_user_id):
    updated_count = _unread(current_user_id).update(
        {'is_read': True, 'read_at': datetime.utcnow()},
        synchronize_session=False
    )
    db.session.commit()

    return jsonify({'success': True, 'updated_count': updated_count}), 200

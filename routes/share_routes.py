# routes/share_routes.py

import logging

from flask import Blueprint, request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from services.errors import Forbidden, InconsistentState, ShareError
from services.permission_resolver import PermissionResolver, parse_item_type
from services.shared_listing import SharedListingService
from services.share_service import ShareService
from utils.security import admin_required, login_required

logger = logging.getLogger(__name__)

share_bp = Blueprint('share', __name__)

permission_resolver = PermissionResolver()
listing_service = SharedListingService(permission_resolver)
share_service = ShareService(permission_resolver)


@share_bp.errorhandler(ShareError)
def handle_share_error(error):
    return jsonify({
        'error': error.message,
        'code': error.code
    }), error.status_code


def _listing_failure(error):
    # Never return a half-resolved permission view
    logger.exception(f"Shared listing failed: {error}")
    return jsonify({
        'error': 'Failed to load shared items',
        'code': 'LISTING_FAILED',
        'folders': [],
        'documents': []
    }), 500


def _share_payload(share):
    data = share.to_dict()
    if share.document_id is not None:
        data['item_name'] = share.document.title if share.document else None
    else:
        data['item_name'] = share.folder.name if share.folder else None
    return data

# ===================== SHARES =====================

@share_bp.route('/shares', methods=['GET'])
@login_required
def incoming_shares(user):
    """Shares granted TO the current user."""
    shares = share_service.list_incoming_shares(user.id)
    return jsonify([_share_payload(share) for share in shares]), 200


@share_bp.route('/shares', methods=['POST'])
@login_required
def create_share(user):
    data = request.get_json(silent=True) or {}

    share, created = share_service.create_or_update_share(
        owner=user,
        target_email=data.get('email'),
        item_type=data.get('type'),
        item_id=data.get('item_id'),
        permission=data.get('permission')
    )
    return jsonify(_share_payload(share)), 201 if created else 200


@share_bp.route('/shares/<int:share_id>', methods=['PATCH'])
@login_required
def update_share(user, share_id):
    data = request.get_json(silent=True) or {}

    share = share_service.update_permission(
        share_id,
        data.get('permission'),
        requesting_user_id=user.id,
        is_admin=user.is_admin()
    )
    return jsonify(_share_payload(share)), 200


@share_bp.route('/shares/<int:share_id>', methods=['DELETE'])
@login_required
def delete_share(user, share_id):
    share_service.delete_share(share_id, requesting_user_id=user.id, is_admin=user.is_admin())
    return jsonify({'message': 'Share removed'}), 200


@share_bp.route('/admin/shares', methods=['GET'])
@admin_required
def all_shares(user):
    target_user_id = request.args.get('target_user_id', type=int)
    shares = share_service.list_all_shares(target_user_id)
    return jsonify([_share_payload(share) for share in shares]), 200

# ===================== RESOLUTION =====================

@share_bp.route('/items/<item_type>/<int:item_id>/shares', methods=['GET'])
@login_required
def item_shares(user, item_type, item_id):
    """People who can reach an item, direct grants first, then inherited ones."""
    decision = permission_resolver.resolve_access(user, item_type, item_id)
    if not decision.has_access:
        raise Forbidden()

    resolved = permission_resolver.resolve_item_shares(item_type, item_id)
    return jsonify([entry.to_dict() for entry in resolved]), 200


@share_bp.route('/items/<item_type>/<int:item_id>/permission', methods=['GET'])
@login_required
def item_permission(user, item_type, item_id):
    decision = permission_resolver.resolve_access(user, item_type, item_id)
    data = decision.to_dict()
    data.update({'item_type': parse_item_type(item_type).value, 'item_id': item_id})
    return jsonify(data), 200

# ===================== SHARED WITH ME =====================

@share_bp.route('/shared', methods=['GET'])
@login_required
def shared_items(user):
    parent_id = request.args.get('parent_id', type=int)
    try:
        if parent_id is None:
            result = listing_service.list_top_level(user.id)
        else:
            result = listing_service.list_children(user.id, parent_id)
    except (SQLAlchemyError, InconsistentState) as e:
        return _listing_failure(e)
    return jsonify(result), 200


@share_bp.route('/folders/shared', methods=['GET'])
@login_required
def shared_folders(user):
    parent_id = request.args.get('parent_id', type=int)
    try:
        if parent_id is None:
            result = listing_service.list_top_level(user.id)
        else:
            result = listing_service.list_children(user.id, parent_id)
    except (SQLAlchemyError, InconsistentState) as e:
        return _listing_failure(e)
    return jsonify(result['folders']), 200


@share_bp.route('/documents/shared', methods=['GET'])
@login_required
def shared_documents(user):
    folder_id = request.args.get('folder_id', type=int)
    try:
        if folder_id is None:
            result = listing_service.list_top_level(user.id)
        else:
            result = listing_service.list_children(user.id, folder_id)
    except (SQLAlchemyError, InconsistentState) as e:
        return _listing_failure(e)
    return jsonify(result['documents']), 200


def _search_from_args(user):
    return listing_service.search(
        user.id,
        request.args.get('q', ''),
        under_folder_id=request.args.get('under_folder_id', type=int),
        parent_id=request.args.get('parent_id', type=int)
    )


@share_bp.route('/shared/search', methods=['GET'])
@login_required
def search_shared(user):
    """
    Search the items shared with the current user.

    Query parameters:
    - q: text to look for (blank falls back to the plain listing)
    - under_folder_id: search the whole subtree of this folder
    - parent_id: search only the direct children of this folder
    """
    try:
        result = _search_from_args(user)
    except (SQLAlchemyError, InconsistentState) as e:
        return _listing_failure(e)
    return jsonify(result), 200


@share_bp.route('/folders/shared/search', methods=['GET'])
@login_required
def search_shared_folders(user):
    try:
        result = _search_from_args(user)
    except (SQLAlchemyError, InconsistentState) as e:
        return _listing_failure(e)
    return jsonify(result['folders']), 200


@share_bp.route('/documents/shared/search', methods=['GET'])
@login_required
def search_shared_documents(user):
    try:
        result = _search_from_args(user)
    except (SQLAlchemyError, InconsistentState) as e:
        return _listing_failure(e)
    return jsonify(result['documents']), 200

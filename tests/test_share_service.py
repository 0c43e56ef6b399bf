"""
Unit tests for ShareService
"""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Activity, ActivityType, Notification, Share
from services.errors import Forbidden, NotFound, ValidationError
from services.notification_service import ITEM_SHARED
from services.share_service import ShareService, parse_permission


@pytest.fixture
def service(app):
    return ShareService()


class TestCreateOrUpdateShare:
    """Granting access to a folder or document"""

    def test_create_share(self, service, users, tree):
        share, created = service.create_or_update_share(
            owner=users.owner,
            target_email='recipient@example.com',
            item_type='folder',
            item_id=tree.a.id,
            permission='viewer'
        )

        assert created is True
        assert share.id is not None
        assert share.folder_id == tree.a.id
        assert share.document_id is None
        assert share.target_user_id == users.recipient.id
        assert share.permission == 'viewer'

    def test_sharing_again_updates_the_single_row(self, service, users, tree):
        first, created_first = service.create_or_update_share(
            users.owner, 'recipient@example.com', 'document', tree.d.id, 'viewer')
        second, created_second = service.create_or_update_share(
            users.owner, 'recipient@example.com', 'document', tree.d.id, 'editor')

        rows = Share.query.filter_by(target_user_id=users.recipient.id, document_id=tree.d.id).all()

        assert (created_first, created_second) == (True, False)
        assert first.id == second.id
        assert len(rows) == 1
        assert rows[0].permission == 'editor'

    def test_latest_grantor_takes_over_the_share(self, service, users, tree):
        service.create_or_update_share(users.owner, 'recipient@example.com', 'folder', tree.a.id, 'viewer')
        share, created = service.create_or_update_share(
            users.admin, 'recipient@example.com', 'folder', tree.a.id, 'contributor')

        assert created is False
        assert share.owner_id == users.admin.id
        assert share.permission == 'contributor'

    def test_email_lookup_is_case_insensitive(self, service, users, tree):
        share, _ = service.create_or_update_share(
            users.owner, '  Recipient@Example.COM ', 'folder', tree.a.id, 'viewer')

        assert share.target_user_id == users.recipient.id

    def test_editor_may_reshare(self, service, users, tree, make_share):
        make_share(users.recipient, 'editor', folder=tree.a)

        share, created = service.create_or_update_share(
            users.recipient, 'outsider@example.com', 'document', tree.d.id, 'viewer')

        assert created is True
        assert share.owner_id == users.recipient.id

    def test_viewer_may_not_reshare(self, service, users, tree, make_share):
        make_share(users.recipient, 'viewer', folder=tree.a)

        with pytest.raises(Forbidden):
            service.create_or_update_share(
                users.recipient, 'outsider@example.com', 'document', tree.d.id, 'viewer')

        assert Share.query.filter_by(target_user_id=users.outsider.id).count() == 0

    def test_outsider_may_not_share(self, service, users, tree):
        with pytest.raises(Forbidden) as exc_info:
            service.create_or_update_share(
                users.outsider, 'recipient@example.com', 'folder', tree.a.id, 'editor')

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == 'Forbidden'

    @pytest.mark.parametrize('payload,code', [
        ({'target_email': ''}, 'MISSING_EMAIL'),
        ({'item_type': 'spreadsheet'}, 'INVALID_ITEM_TYPE'),
        ({'item_id': None}, 'MISSING_ITEM_ID'),
        ({'item_id': 'abc'}, 'INVALID_ITEM_ID'),
        ({'permission': 'owner'}, 'INVALID_PERMISSION'),
    ])
    def test_validation(self, service, users, tree, payload, code):
        arguments = {
            'owner': users.owner,
            'target_email': 'recipient@example.com',
            'item_type': 'folder',
            'item_id': tree.a.id,
            'permission': 'viewer',
        }
        arguments.update(payload)

        with pytest.raises(ValidationError) as exc_info:
            service.create_or_update_share(**arguments)

        assert exc_info.value.code == code
        assert exc_info.value.status_code == 400
        assert Share.query.count() == 0

    def test_unknown_target_user(self, service, users, tree):
        with pytest.raises(NotFound) as exc_info:
            service.create_or_update_share(users.owner, 'nobody@example.com', 'folder', tree.a.id, 'viewer')

        assert exc_info.value.code == 'USER_NOT_FOUND'

    def test_self_share_is_rejected(self, service, users, tree):
        with pytest.raises(ValidationError) as exc_info:
            service.create_or_update_share(users.owner, 'owner@example.com', 'folder', tree.a.id, 'viewer')

        assert exc_info.value.code == 'SELF_SHARE'

    def test_missing_item(self, service, users, tree):
        with pytest.raises(NotFound):
            service.create_or_update_share(users.owner, 'recipient@example.com', 'document', 99999, 'viewer')

    def test_records_activity_and_notifies_once(self, service, users, tree):
        share, _ = service.create_or_update_share(
            users.owner, 'recipient@example.com', 'document', tree.d.id, 'viewer')
        service.create_or_update_share(
            users.owner, 'recipient@example.com', 'document', tree.d.id, 'contributor')

        actions = [a.action for a in Activity.query.order_by(Activity.id).all()]
        notifications = Notification.query.filter_by(user_id=users.recipient.id).all()

        assert actions == [ActivityType.SHARE_CREATED.value, ActivityType.SHARE_UPDATED.value]
        assert len(notifications) == 1
        assert notifications[0].type == ITEM_SHARED
        assert notifications[0].data['item_name'] == 'Deep Report'
        assert notifications[0].data['shared_by'] == 'Olivia Owner'
        assert notifications[0].data['item_id'] == share.document_id


class TestUpdatePermission:

    def test_owner_updates_permission(self, service, users, tree, make_share):
        share = make_share(users.recipient, 'viewer', folder=tree.a)

        updated = service.update_permission(share.id, 'editor', users.owner.id, is_admin=False)

        assert updated.permission == 'editor'

    def test_other_user_cannot_update(self, service, db_session, users, tree, make_share):
        share = make_share(users.recipient, 'viewer', folder=tree.a)

        with pytest.raises(Forbidden):
            service.update_permission(share.id, 'editor', users.recipient.id, is_admin=False)

        assert db_session.get(Share, share.id).permission == 'viewer'

    def test_invalid_permission(self, service, users, tree, make_share):
        share = make_share(users.recipient, 'viewer', folder=tree.a)

        with pytest.raises(ValidationError):
            service.update_permission(share.id, 'superuser', users.owner.id, is_admin=False)

    def test_unknown_share(self, service, users):
        with pytest.raises(NotFound) as exc_info:
            service.update_permission(12345, 'viewer', users.owner.id, is_admin=True)

        assert exc_info.value.code == 'SHARE_NOT_FOUND'


class TestDeleteShare:

    def test_owner_deletes(self, service, db_session, users, tree, make_share):
        share = make_share(users.recipient, 'viewer', folder=tree.a)
        share_id = share.id

        service.delete_share(share_id, users.owner.id, is_admin=False)

        assert db_session.get(Share, share_id) is None
        activity = Activity.query.filter_by(action=ActivityType.SHARE_DELETED.value).one()
        assert activity.details['share_id'] == share_id

    def test_recipient_cannot_delete(self, service, db_session, users, tree, make_share):
        share = make_share(users.recipient, 'viewer', folder=tree.a)

        with pytest.raises(Forbidden):
            service.delete_share(share.id, users.recipient.id, is_admin=False)

        assert db_session.get(Share, share.id) is not None

    def test_admin_deletes_any_share(self, service, db_session, users, tree, make_share):
        share = make_share(users.recipient, 'viewer', folder=tree.a)
        share_id = share.id

        service.delete_share(share_id, users.admin.id, is_admin=True)

        assert db_session.get(Share, share_id) is None


class TestShareListings:

    def test_incoming_and_admin_overview(self, service, users, tree, make_share):
        mine = make_share(users.recipient, 'viewer', folder=tree.a)
        theirs = make_share(users.outsider, 'editor', document=tree.d)

        assert [s.id for s in service.list_incoming_shares(users.recipient.id)] == [mine.id]
        assert [s.id for s in service.list_all_shares()] == [mine.id, theirs.id]
        assert [s.id for s in service.list_all_shares(target_user_id=users.outsider.id)] == [theirs.id]


def test_parse_permission_normalizes_case():
    assert parse_permission(' Editor ').value == 'editor'


class TestOneGrantPerItem:
    """The store itself refuses a second grant of the same item to the same user"""

    def test_duplicate_folder_grant_is_rejected(self, db_session, users, tree, make_share):
        make_share(users.recipient, 'viewer', folder=tree.a)

        with pytest.raises(IntegrityError):
            make_share(users.recipient, 'editor', folder=tree.a)
        db_session.rollback()

        assert Share.query.filter_by(target_user_id=users.recipient.id, folder_id=tree.a.id).count() == 1

    def test_duplicate_document_grant_is_rejected(self, db_session, users, tree, make_share):
        make_share(users.recipient, 'viewer', document=tree.d)

        with pytest.raises(IntegrityError):
            make_share(users.recipient, 'viewer', document=tree.d, owner=users.admin)
        db_session.rollback()

        assert Share.query.filter_by(target_user_id=users.recipient.id, document_id=tree.d.id).count() == 1

    def test_same_item_for_other_users_is_allowed(self, users, tree, make_share):
        make_share(users.recipient, 'viewer', folder=tree.a)
        make_share(users.outsider, 'viewer', folder=tree.a)
        make_share(users.recipient, 'viewer', folder=tree.b)

        assert Share.query.count() == 3

    def test_concurrent_insert_falls_back_to_update(self, service, users, tree, make_share):
        existing = make_share(users.recipient, 'viewer', folder=tree.a)
        existing_id = existing.id
        real_upsert = ShareService._upsert
        calls = []

        def racing_upsert(self, owner_id, target_id, document_id, folder_id, level):
            calls.append(level)
            if len(calls) == 1:
                # Insert as if the lookup had run before the other request committed
                share = Share(owner_id=owner_id, target_user_id=target_id, document_id=document_id,
                              folder_id=folder_id, permission=level.value)
                db.session.add(share)
                return share, True
            return real_upsert(self, owner_id, target_id, document_id, folder_id, level)

        with patch.object(ShareService, '_upsert', autospec=True, side_effect=racing_upsert):
            share, created = service.create_or_update_share(
                users.owner, 'recipient@example.com', 'folder', tree.a.id, 'editor')

        rows = Share.query.filter_by(target_user_id=users.recipient.id, folder_id=tree.a.id).all()

        assert len(calls) == 2
        assert created is False
        assert share.id == existing_id
        assert [(r.id, r.permission) for r in rows] == [(existing_id, 'editor')]
        assert Notification.query.count() == 0
        assert [a.action for a in Activity.query.all()] == [ActivityType.SHARE_UPDATED.value]

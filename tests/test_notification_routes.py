"""
Tests for in-app share notifications
"""
import pytest


@pytest.fixture
def shared_twice(client, users, tree, login):
    headers = login(users.owner)
    for item_type, item_id in (('folder', tree.a.id), ('document', tree.loose.id)):
        response = client.post('/shares', json={
            'type': item_type,
            'item_id': item_id,
            'email': users.recipient.email,
            'permission': 'viewer'
        }, headers=headers)
        assert response.status_code == 201


class TestNotificationRoutes:

    def test_recipient_is_notified(self, client, users, login, shared_twice):
        response = client.get('/notifications', headers=login(users.recipient))
        data = response.get_json()

        assert response.status_code == 200
        assert data['unread_count'] == 2
        assert {n['data']['item_name'] for n in data['notifications']} == {'Alpha', 'Loose Memo'}
        assert all(n['type'] == 'item_shared' for n in data['notifications'])

    def test_grantor_is_not_notified(self, client, users, login, shared_twice):
        data = client.get('/notifications', headers=login(users.owner)).get_json()
        assert data == {'notifications': [], 'unread_count': 0}

    def test_mark_one_as_read(self, client, users, login, shared_twice):
        headers = login(users.recipient)
        first = client.get('/notifications', headers=headers).get_json()['notifications'][0]

        response = client.post(f"/notifications/{first['id']}/read", headers=headers)
        data = client.get('/notifications', headers=headers).get_json()

        assert response.status_code == 200
        assert data['unread_count'] == 1

    def test_cannot_read_someone_elses_notification(self, client, users, login, shared_twice):
        notification_id = client.get(
            '/notifications', headers=login(users.recipient)).get_json()['notifications'][0]['id']

        response = client.post(f'/notifications/{notification_id}/read', headers=login(users.outsider))

        assert response.status_code == 404

    def test_mark_all_as_read(self, client, users, login, shared_twice):
        headers = login(users.recipient)

        response = client.post('/notifications/read-all', headers=headers)

        assert response.get_json() == {'success': True, 'updated': 2}
        assert client.get('/notifications', headers=headers).get_json()['unread_count'] == 0

    def test_invalid_limit(self, client, users, login):
        response = client.get('/notifications?limit=0', headers=login(users.recipient))
        assert response.status_code == 400

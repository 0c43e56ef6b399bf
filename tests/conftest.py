"""
Pytest configuration and fixtures for backend tests
"""
import os
import tempfile
from types import SimpleNamespace

import pytest

from app import create_app
from extensions import db
from models import Department, Document, Folder, Share, User


@pytest.fixture
def app():
    """Create application for testing"""
    # Create a temporary database file
    db_fd, db_path = tempfile.mkstemp(suffix='.sqlite')

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'JWT_SECRET_KEY': 'test-secret-key-for-the-sharing-service-suite',
        'MAX_TRAVERSAL_DEPTH': 16,
        'SHARED_SEARCH_LIMIT': 50,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

    # Cleanup
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def db_session(app):
    return db.session


def _make_user(name, email, role, department):
    user = User(name=name, email=email, role=role, department_id=department.id)
    user.set_password('test_password')
    db.session.add(user)
    return user


@pytest.fixture
def departments(db_session):
    registrar = Department(name='Registrar', code='REG')
    finance = Department(name='Finance', code='FIN')
    db_session.add_all([registrar, finance])
    db_session.commit()
    return SimpleNamespace(registrar=registrar, finance=finance)


@pytest.fixture
def users(db_session, departments):
    """Owner in Registrar; recipient and outsider in Finance; an admin in Finance."""
    owner = _make_user('Olivia Owner', 'owner@example.com', 'staff', departments.registrar)
    recipient = _make_user('Ramon Recipient', 'recipient@example.com', 'staff', departments.finance)
    outsider = _make_user('Oscar Outsider', 'outsider@example.com', 'staff', departments.finance)
    admin = _make_user('Ada Admin', 'admin@example.com', 'admin', departments.finance)
    db_session.commit()
    return SimpleNamespace(owner=owner, recipient=recipient, outsider=outsider, admin=admin)


@pytest.fixture
def make_folder(db_session, departments, users):
    def factory(name, parent=None, department=None, owner=None, **fields):
        folder = Folder(
            name=name,
            parent_id=parent.id if parent is not None else None,
            department_id=(department or departments.registrar).id,
            owner_id=(owner or users.owner).id,
            **fields
        )
        db_session.add(folder)
        db_session.commit()
        return folder
    return factory


@pytest.fixture
def make_document(db_session, departments, users):
    def factory(title, folder=None, department=None, owner=None, **fields):
        document = Document(
            title=title,
            original_filename=fields.pop('original_filename', f"{title.lower().replace(' ', '_')}.pdf"),
            mime_type='application/pdf',
            size_bytes=1024,
            folder_id=folder.id if folder is not None else None,
            department_id=(department or departments.registrar).id,
            owner_id=(owner or users.owner).id,
            **fields
        )
        db_session.add(document)
        db_session.commit()
        return document
    return factory


@pytest.fixture
def make_share(db_session, users):
    def factory(target, permission='viewer', folder=None, document=None, owner=None):
        share = Share(
            owner_id=(owner or users.owner).id,
            target_user_id=target.id,
            folder_id=folder.id if folder is not None else None,
            document_id=document.id if document is not None else None,
            permission=permission
        )
        db_session.add(share)
        db_session.commit()
        return share
    return factory


@pytest.fixture
def tree(make_folder, make_document):
    """
    Registrar tree:

        A/            (root)
          B/
            D.pdf
          notes.pdf
        Z/            (root, unrelated)
        loose.pdf     (department root)
    """
    a = make_folder('Alpha')
    b = make_folder('Beta', parent=a)
    z = make_folder('Zulu')
    d = make_document('Deep Report', folder=b)
    notes = make_document('Meeting Notes', folder=a)
    loose = make_document('Loose Memo')
    return SimpleNamespace(a=a, b=b, z=z, d=d, notes=notes, loose=loose)


@pytest.fixture
def login(client):
    """Return a function producing auth headers for a user"""
    def _login(user, password='test_password'):
        response = client.post('/auth/login', json={
            'email': user.email,
            'password': password
        })

        assert response.status_code == 200
        token = response.get_json()['access_token']

        return {'Authorization': f'Bearer {token}'}
    return _login

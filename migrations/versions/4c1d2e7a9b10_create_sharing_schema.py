"""create_sharing_schema

Revision ID: 4c1d2e7a9b10
Revises:
Create Date: 2026-01-06 10:12:44.501233

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c1d2e7a9b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('code', sa.String(length=30), nullable=True, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_qa', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='staff'),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'folders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('folders.id'), nullable=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=False),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('trashed_at', sa.DateTime(), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    # Index for folders table - optimize hierarchy traversal
    op.create_index('idx_folders_parent', 'folders', ['parent_id'])
    op.create_index('idx_folders_department_parent', 'folders', ['department_id', 'parent_id'])

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('original_filename', sa.String(length=255), nullable=True),
        sa.Column('mime_type', sa.String(length=120), nullable=True),
        sa.Column('size_bytes', sa.BigInteger(), nullable=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=False),
        sa.Column('folder_id', sa.Integer(), sa.ForeignKey('folders.id'), nullable=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('uploaded_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('trashed_at', sa.DateTime(), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(), nullable=True),
    )
    op.create_index('idx_documents_folder', 'documents', ['folder_id'])
    op.create_index('idx_documents_department', 'documents', ['department_id'])

    op.create_table(
        'shares',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('target_user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('document_id', sa.Integer(), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=True),
        sa.Column('folder_id', sa.Integer(), sa.ForeignKey('folders.id', ondelete='CASCADE'), nullable=True),
        sa.Column('permission', sa.String(length=20), nullable=False, server_default='viewer'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('(document_id IS NULL) <> (folder_id IS NULL)', name='shares_exactly_one_item'),
    )
    # One grant per (user, item). NULLs never collide in a plain unique
    # constraint, so each item column gets its own partial unique index
    op.create_index('uq_shares_target_folder', 'shares', ['target_user_id', 'folder_id'], unique=True,
                    postgresql_where=sa.text('folder_id IS NOT NULL'),
                    sqlite_where=sa.text('folder_id IS NOT NULL'))
    op.create_index('uq_shares_target_document', 'shares', ['target_user_id', 'document_id'], unique=True,
                    postgresql_where=sa.text('document_id IS NOT NULL'),
                    sqlite_where=sa.text('document_id IS NOT NULL'))
    # Index for shares table - optimize inheritance lookups
    op.create_index('idx_shares_folder', 'shares', ['folder_id'])
    op.create_index('idx_shares_document', 'shares', ['document_id'])

    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('subject_type', sa.String(length=30), nullable=False),
        sa.Column('subject_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_activities_user_id', 'activities', ['user_id'])
    op.create_index('idx_activities_subject', 'activities', ['subject_type', 'subject_id'])
    op.create_index('idx_activities_created_at', 'activities', ['created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_notifications_user_read', 'notifications', ['user_id', 'read_at'])


def downgrade():
    # Drop in reverse dependency order
    op.drop_index('idx_notifications_user_read', 'notifications')
    op.drop_table('notifications')

    op.drop_index('idx_activities_created_at', 'activities')
    op.drop_index('idx_activities_subject', 'activities')
    op.drop_index('idx_activities_user_id', 'activities')
    op.drop_table('activities')

    op.drop_index('idx_shares_document', 'shares')
    op.drop_index('idx_shares_folder', 'shares')
    op.drop_index('uq_shares_target_document', 'shares')
    op.drop_index('uq_shares_target_folder', 'shares')
    op.drop_table('shares')

    op.drop_index('idx_documents_department', 'documents')
    op.drop_index('idx_documents_folder', 'documents')
    op.drop_table('documents')

    op.drop_index('idx_folders_department_parent', 'folders')
    op.drop_index('idx_folders_parent', 'folders')
    op.drop_table('folders')

    op.drop_table('users')
    op.drop_table('departments')

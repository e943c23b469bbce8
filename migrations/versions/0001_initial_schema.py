"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-10-01 09:00:00.000000

"""
from typing import Sequence, Union
import uuid

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE_NAMES = ('admin', 'developer', 'tester', 'designer')
DEFAULT_COLUMNS = (('To Do', '#3B82F6'), ('In Progress', '#F59E0B'), ('Complete', '#10B981'))


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _fk(name, target, ondelete, nullable=False):
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    """Upgrade schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')

    roles = op.create_table(
        'roles',
        _id(),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
        *_timestamps(),
        sa.CheckConstraint("name IN ('admin', 'developer', 'tester', 'designer')", name='ck_roles_name'),
    )

    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('image', sa.String(), nullable=True),
        sa.Column('role', sa.String(50), nullable=False, server_default='developer'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'clients',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'projects',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        _fk('client_id', 'clients.id', 'CASCADE'),
        sa.Column('total_time', sa.String(), nullable=True),
        sa.Column('completed_time', sa.String(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_memo_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'completed', 'on-hold')", name='ck_projects_status'),
    )
    op.create_index('ix_projects_client_id', 'projects', ['client_id'])

    op.create_table(
        'user_project_assignments',
        _id(),
        _fk('user_id', 'users.id', 'CASCADE'),
        _fk('project_id', 'projects.id', 'CASCADE'),
        sa.Column('assigned_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_activated_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_read_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_user_project_assignments_unique', 'user_project_assignments', ['user_id', 'project_id'], unique=True)
    op.create_index('ix_user_project_assignments_project_id', 'user_project_assignments', ['project_id'])

    task_columns = op.create_table(
        'task_columns',
        _id(),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('color', sa.String(20), nullable=False, server_default='#6B7280'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        _fk('project_id', 'projects.id', 'CASCADE', nullable=True),
        _fk('user_id', 'users.id', 'CASCADE', nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_task_columns_project_id', 'task_columns', ['project_id'])
    op.create_index('ix_task_columns_user_id', 'task_columns', ['user_id'])

    op.create_table(
        'tasks',
        _id(),
        sa.Column('short_id', sa.String(9), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='todo'),
        sa.Column('priority', sa.String(10), nullable=False, server_default='medium'),
        sa.Column('type', sa.String(50), nullable=True),
        sa.Column('deadline', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('estimated_time', sa.String(), nullable=True),
        sa.Column('completed_time', sa.String(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        _fk('project_id', 'projects.id', 'CASCADE'),
        _fk('parent_task_id', 'tasks.id', 'CASCADE', nullable=True),
        _fk('column_id', 'task_columns.id', 'SET NULL', nullable=True),
        _fk('created_by', 'users.id', 'SET NULL', nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('todo', 'in_progress', 'done')", name='ck_tasks_status'),
        sa.CheckConstraint("priority IN ('low', 'medium', 'high')", name='ck_tasks_priority'),
    )
    op.create_index(op.f('ix_tasks_short_id'), 'tasks', ['short_id'], unique=True)
    op.create_index('ix_tasks_project_id_created_at', 'tasks', ['project_id', 'created_at'])
    op.create_index('ix_tasks_parent_task_id', 'tasks', ['parent_task_id'])
    op.create_index('ix_tasks_column_id_position', 'tasks', ['column_id', 'position'])

    op.create_table(
        'user_task_assignments',
        _id(),
        _fk('user_id', 'users.id', 'CASCADE'),
        _fk('task_id', 'tasks.id', 'CASCADE'),
        sa.Column('assigned_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_user_task_assignments_unique', 'user_task_assignments', ['user_id', 'task_id'], unique=True)

    op.create_table(
        'task_comments',
        _id(),
        _fk('task_id', 'tasks.id', 'CASCADE'),
        _fk('user_id', 'users.id', 'CASCADE'),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_task_comments_task_id_created_at', 'task_comments', ['task_id', 'created_at'])

    op.create_table(
        'memos',
        _id(),
        _fk('user_id', 'users.id', 'CASCADE'),
        _fk('project_id', 'projects.id', 'CASCADE'),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('memo_type', sa.String(20), nullable=False, server_default='short'),
        sa.Column('memo_content', sa.Text(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("memo_type IN ('universal', 'short')", name='ck_memos_memo_type'),
    )
    op.create_index('ix_memos_unique_per_day', 'memos', ['user_id', 'project_id', 'report_date', 'memo_type'], unique=True)
    op.create_index('ix_memos_report_date', 'memos', ['report_date'])

    op.create_table(
        'eod_reports',
        _id(),
        _fk('user_id', 'users.id', 'CASCADE'),
        _fk('project_id', 'projects.id', 'CASCADE'),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('client_update', sa.Text(), nullable=True),
        sa.Column('actual_update', sa.Text(), nullable=False),
        sa.Column('hours_spent', sa.Numeric(5, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_eod_reports_unique_per_day', 'eod_reports', ['user_id', 'project_id', 'report_date'], unique=True)
    op.create_index('ix_eod_reports_report_date', 'eod_reports', ['report_date'])

    op.create_table(
        'links',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('url', sa.String(2048), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _fk('project_id', 'projects.id', 'CASCADE'),
        _fk('client_id', 'clients.id', 'SET NULL', nullable=True),
        _fk('added_by', 'users.id', 'SET NULL', nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_links_project_id_updated_at', 'links', ['project_id', 'updated_at'])

    op.create_table(
        'assets',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('file_url', sa.String(2048), nullable=False),
        sa.Column('file_type', sa.String(255), nullable=True),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('folder_type', sa.String(20), nullable=True),
        sa.Column('storage_key', sa.String(1024), nullable=True),
        _fk('project_id', 'projects.id', 'CASCADE'),
        _fk('client_id', 'clients.id', 'SET NULL', nullable=True),
        _fk('uploaded_by', 'users.id', 'CASCADE'),
        *_timestamps(),
    )
    op.create_index('ix_assets_project_id_created_at', 'assets', ['project_id', 'created_at'])

    op.create_table(
        'chat_groups',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        'messages',
        _id(),
        _fk('group_id', 'chat_groups.id', 'CASCADE'),
        _fk('sender_id', 'users.id', 'CASCADE'),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_messages_group_id_created_at', 'messages', ['group_id', 'created_at'])

    op.create_table(
        'notification_preferences',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('email_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('slack_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('push_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('eod_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('memo_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('project_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'notification_recipients',
        _id(),
        sa.Column('email', sa.String(320), nullable=False, unique=True),
        sa.Column('label', sa.String(100), nullable=False, server_default='External'),
        sa.Column('eod_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('memo_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('project_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        _fk('created_by', 'users.id', 'SET NULL', nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'push_subscriptions',
        _id(),
        _fk('user_id', 'users.id', 'CASCADE'),
        sa.Column('endpoint', sa.Text(), nullable=False, unique=True),
        sa.Column('p256dh', sa.Text(), nullable=False),
        sa.Column('auth', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('idx_push_subscriptions_user_id', 'push_subscriptions', ['user_id'])

    op.create_table(
        'notifications',
        _id(),
        _fk('user_id', 'users.id', 'CASCADE'),
        sa.Column('event_type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('action_url', sa.String(500), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('idx_notifications_user_id_created_at', 'notifications', ['user_id', 'created_at'])
    op.create_index('idx_notifications_user_id_is_read', 'notifications', ['user_id', 'is_read'])
    op.create_index('idx_notifications_expires_at', 'notifications', ['expires_at'])

    op.create_table(
        'email_notification_logs',
        _id(),
        _fk('notification_id', 'notifications.id', 'CASCADE', nullable=True),
        _fk('user_id', 'users.id', 'CASCADE', nullable=True),
        sa.Column('email_address', sa.String(320), nullable=False),
        sa.Column('event_type', sa.String(50), nullable=False),
        sa.Column('subject', sa.String(200), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('provider_message_id', sa.String(255), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('idx_email_notification_logs_created_at', 'email_notification_logs', ['created_at'])
    op.create_index('idx_email_notification_logs_status', 'email_notification_logs', ['status'])

    op.create_table(
        'audit_logs',
        _id(),
        _fk('actor_user_id', 'users.id', 'SET NULL', nullable=True),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('target_type', sa.Text(), nullable=True),
        sa.Column('target_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_audit_logs_actor_user_id_created_at', 'audit_logs', ['actor_user_id', 'created_at'])
    op.create_index('ix_audit_logs_action_type', 'audit_logs', ['action_type'])

    op.bulk_insert(roles, [{'id': uuid.uuid4(), 'name': name} for name in ROLE_NAMES])
    op.bulk_insert(task_columns, [
        {'id': uuid.uuid4(), 'title': title, 'color': color, 'position': position, 'is_default': True}
        for position, (title, color) in enumerate(DEFAULT_COLUMNS)
    ])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('audit_logs')
    op.drop_table('email_notification_logs')
    op.drop_table('notifications')
    op.drop_table('push_subscriptions')
    op.drop_table('notification_recipients')
    op.drop_table('notification_preferences')
    op.drop_table('messages')
    op.drop_table('chat_groups')
    op.drop_table('assets')
    op.drop_table('links')
    op.drop_table('eod_reports')
    op.drop_table('memos')
    op.drop_table('task_comments')
    op.drop_table('user_task_assignments')
    op.drop_table('tasks')
    op.drop_table('task_columns')
    op.drop_table('user_project_assignments')
    op.drop_table('projects')
    op.drop_table('clients')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
    op.drop_table('roles')

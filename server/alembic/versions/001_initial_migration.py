"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ('admin', 'employee')
LEAVE_TYPES = ('annual', 'sick', 'personal', 'maternity', 'paternity', 'emergency')
LEAVE_STATUSES = ('pending', 'approved', 'rejected')


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum(*USER_ROLES, name='userrole'), nullable=False, server_default='employee'),
        sa.Column('employee_id', sa.String(50), nullable=False),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('joining_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_employee_id', 'users', ['employee_id'], unique=True)
    op.create_index('idx_users_role_created', 'users', ['role', 'created_at'])

    # Create sessions table
    op.create_table(
        'sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('refresh_token_hash', sa.String(255), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('ip', sa.String(45), nullable=True),
    )
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'])

    # Create leaves table
    op.create_table(
        'leaves',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leave_type', sa.Enum(*LEAVE_TYPES, name='leavetype'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_days', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.Enum(*LEAVE_STATUSES, name='leavestatus'), nullable=False, server_default='pending'),
        sa.Column('admin_comments', sa.Text(), nullable=True),
        sa.Column('approved_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('end_date >= start_date', name='ck_leaves_date_order'),
        sa.CheckConstraint('total_days >= 1', name='ck_leaves_total_days_positive'),
    )
    op.create_index('ix_leaves_user_id', 'leaves', ['user_id'])
    op.create_index('idx_leaves_user_status', 'leaves', ['user_id', 'status'])
    op.create_index('idx_leaves_status_created', 'leaves', ['status', 'created_at'])


def downgrade() -> None:
    op.drop_table('leaves')
    op.drop_table('sessions')
    op.drop_table('users')
    sa.Enum(name='leavestatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='leavetype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)

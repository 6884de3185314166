"""Baseline migration - workflows, reminders and delivery jobs

Revision ID: 0001_workflow_reminders
Revises:
Create Date: 2026-10-16

Creates users/teams/memberships, booking workflows with their steps and
event type links, workflow reminders and the jobs table used to defer
reminder delivery.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_workflow_reminders'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create workflow reminder tables."""

    # ==========================================================================
    # Users and teams
    # ==========================================================================
    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=True),
        sa.Column('is_organization', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_teams'),
        sa.UniqueConstraint('slug', name='uq_teams_slug'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('locale', sa.String(length=20), server_default=sa.text("'en'"), nullable=True),
        sa.Column('time_zone', sa.String(length=64), server_default=sa.text("'UTC'"), nullable=True),
        sa.Column('organization_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['teams.id'],
            name='fk_users_organization_id_teams', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'memberships',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=20), server_default=sa.text("'MEMBER'"), nullable=False),
        sa.Column('accepted', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], name='fk_memberships_user_id_users', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['team_id'], ['teams.id'], name='fk_memberships_team_id_teams', ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_memberships'),
        sa.UniqueConstraint('user_id', 'team_id', name='uq_membership_user_team'),
    )

    # ==========================================================================
    # Workflows
    # ==========================================================================
    op.create_table(
        'workflows',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('position', sa.Integer(), server_default=sa.text('0'), nullable=True),
        sa.Column('trigger', sa.String(length=50), nullable=False),
        sa.Column('time', sa.Integer(), nullable=True),
        sa.Column('time_unit', sa.String(length=20), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('team_id', sa.Integer(), nullable=True),
        sa.Column('is_active_on_all', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            '(user_id IS NULL) <> (team_id IS NULL)',
            name='ck_workflows_workflow_single_owner',
        ),
        sa.CheckConstraint(
            '(time IS NULL) = (time_unit IS NULL)',
            name='ck_workflows_workflow_time_pair',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], name='fk_workflows_user_id_users', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['team_id'], ['teams.id'], name='fk_workflows_team_id_teams', ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_workflows'),
    )
    op.create_index('idx_workflow_user', 'workflows', ['user_id'])
    op.create_index('idx_workflow_team', 'workflows', ['team_id'])

    op.create_table(
        'workflow_steps',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('workflow_id', sa.Integer(), nullable=False),
        sa.Column('step_number', sa.Integer(), server_default=sa.text('1'), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('send_to', sa.String(length=255), nullable=True),
        sa.Column('template', sa.String(length=20), server_default=sa.text("'REMINDER'"), nullable=False),
        sa.Column('reminder_body', sa.Text(), nullable=True),
        sa.Column('email_subject', sa.String(length=500), nullable=True),
        sa.Column('sender', sa.String(length=100), nullable=True),
        sa.Column('include_calendar_event', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('number_verification_pending', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('number_required', sa.Boolean(), nullable=True),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['workflow_id'], ['workflows.id'],
            name='fk_workflow_steps_workflow_id_workflows', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_workflow_steps'),
    )
    op.create_index('idx_workflow_step_workflow', 'workflow_steps', ['workflow_id', 'step_number'])

    op.create_table(
        'workflows_on_event_types',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('workflow_id', sa.Integer(), nullable=False),
        sa.Column('event_type_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ['workflow_id'], ['workflows.id'],
            name='fk_workflows_on_event_types_workflow_id_workflows', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_workflows_on_event_types'),
        sa.UniqueConstraint('workflow_id', 'event_type_id', name='uq_workflow_event_type'),
    )
    op.create_index('idx_woe_event_type', 'workflows_on_event_types', ['event_type_id'])

    # ==========================================================================
    # Reminders and delivery jobs
    # ==========================================================================
    op.create_table(
        'workflow_reminders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', sa.String(length=36), nullable=True),
        sa.Column('booking_uid', sa.String(length=255), nullable=True),
        sa.Column('workflow_step_id', sa.Integer(), nullable=True),
        sa.Column('method', sa.String(length=20), nullable=False),
        sa.Column('scheduled_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('scheduled', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('cancelled', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('seat_reference_id', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ['workflow_step_id'], ['workflow_steps.id'],
            name='fk_workflow_reminders_workflow_step_id_workflow_steps', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_workflow_reminders'),
        sa.UniqueConstraint('uuid', name='uq_workflow_reminders_uuid'),
    )
    op.create_index(
        'idx_reminder_booking', 'workflow_reminders', ['booking_uid', 'method', 'cancelled']
    )
    op.create_index('idx_reminder_step', 'workflow_reminders', ['workflow_step_id'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_type', sa.String(length=50), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('run_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('status', sa.String(length=20), server_default=sa.text("'pending'"), nullable=False),
        sa.Column('attempts', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('max_attempts', sa.Integer(), server_default=sa.text('3'), nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('idempotency_key', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_jobs'),
        sa.UniqueConstraint('idempotency_key', name='uq_jobs_idempotency_key'),
    )
    op.create_index('idx_jobs_pending', 'jobs', ['status', 'run_at'])


def downgrade() -> None:
    """Drop workflow reminder tables."""
    op.drop_index('idx_jobs_pending', table_name='jobs')
    op.drop_table('jobs')
    op.drop_index('idx_reminder_step', table_name='workflow_reminders')
    op.drop_index('idx_reminder_booking', table_name='workflow_reminders')
    op.drop_table('workflow_reminders')
    op.drop_index('idx_woe_event_type', table_name='workflows_on_event_types')
    op.drop_table('workflows_on_event_types')
    op.drop_index('idx_workflow_step_workflow', table_name='workflow_steps')
    op.drop_table('workflow_steps')
    op.drop_index('idx_workflow_team', table_name='workflows')
    op.drop_index('idx_workflow_user', table_name='workflows')
    op.drop_table('workflows')
    op.drop_table('memberships')
    op.drop_table('users')
    op.drop_table('teams')

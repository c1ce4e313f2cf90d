"""initial church scheduling schema

Revision ID: 3e8a61c0d5b2
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '3e8a61c0d5b2'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'churches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('church_id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='member'),
        sa.Column('receive_email_notifications', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('notification_preferences', sa.JSON(), nullable=True),
        sa.Column('language', sa.String(length=8), nullable=True),
        sa.ForeignKeyConstraint(['church_id'], ['churches.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_profiles_church_id'), 'profiles', ['church_id'], unique=False)

    op.create_table(
        'ministries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('church_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('color', sa.String(length=16), nullable=True),
        sa.Column('leader_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['church_id'], ['churches.id']),
        sa.ForeignKeyConstraint(['leader_id'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_ministries_church_id'), 'ministries', ['church_id'], unique=False)

    op.create_table(
        'ministry_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ministry_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(['ministry_id'], ['ministries.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_ministry_roles_ministry_id'), 'ministry_roles', ['ministry_id'], unique=False)

    op.create_table(
        'ministry_members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ministry_id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.ForeignKeyConstraint(['ministry_id'], ['ministries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('ministry_id', 'profile_id', name='uq_ministry_member'),
    )
    op.create_index(op.f('ix_ministry_members_ministry_id'), 'ministry_members', ['ministry_id'], unique=False)
    op.create_index(op.f('ix_ministry_members_profile_id'), 'ministry_members', ['profile_id'], unique=False)

    op.create_table(
        'ministry_member_roles',
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['member_id'], ['ministry_members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['ministry_roles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('member_id', 'role_id'),
    )

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('church_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='draft'),
        sa.Column('responsible_person_id', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['church_id'], ['churches.id']),
        sa.ForeignKeyConstraint(['responsible_person_id'], ['profiles.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_events_church_id'), 'events', ['church_id'], unique=False)
    op.create_index(op.f('ix_events_start_time'), 'events', ['start_time'], unique=False)

    op.create_table(
        'event_positions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('ministry_id', sa.Integer(), nullable=True),
        sa.Column('role_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('quantity_needed', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['ministry_id'], ['ministries.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['role_id'], ['ministry_roles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity_needed >= 1', name='ck_event_positions_quantity'),
    )
    op.create_index(op.f('ix_event_positions_event_id'), 'event_positions', ['event_id'], unique=False)
    op.create_index(op.f('ix_event_positions_ministry_id'), 'event_positions', ['ministry_id'], unique=False)

    op.create_table(
        'event_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('position_id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        sa.Column('assigned_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=True),
        sa.Column('invited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['position_id'], ['event_positions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_by'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('position_id', 'profile_id', name='uq_event_assignment_profile'),
    )
    op.create_index(op.f('ix_event_assignments_position_id'), 'event_assignments', ['position_id'], unique=False)
    op.create_index(op.f('ix_event_assignments_profile_id'), 'event_assignments', ['profile_id'], unique=False)
    op.create_index(op.f('ix_event_assignments_status'), 'event_assignments', ['status'], unique=False)

    op.create_table(
        'volunteer_unavailability',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('church_id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(['church_id'], ['churches.id']),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('start_date <= end_date', name='ck_volunteer_unavailability_range'),
    )
    op.create_index(op.f('ix_volunteer_unavailability_church_id'), 'volunteer_unavailability', ['church_id'], unique=False)
    op.create_index(op.f('ix_volunteer_unavailability_profile_id'), 'volunteer_unavailability', ['profile_id'], unique=False)
    op.create_index(op.f('ix_volunteer_unavailability_start_date'), 'volunteer_unavailability', ['start_date'], unique=False)
    op.create_index(op.f('ix_volunteer_unavailability_end_date'), 'volunteer_unavailability', ['end_date'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('church_id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False, server_default=''),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('assignment_id', sa.Integer(), nullable=True),
        sa.Column('email_token', sa.String(length=64), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_actioned', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('action_taken', sa.String(length=16), nullable=True),
        sa.Column('actioned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['church_id'], ['churches.id']),
        sa.ForeignKeyConstraint(['recipient_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assignment_id'], ['event_assignments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email_token', name='uq_notifications_email_token'),
    )
    op.create_index(op.f('ix_notifications_church_id'), 'notifications', ['church_id'], unique=False)
    op.create_index(op.f('ix_notifications_recipient_id'), 'notifications', ['recipient_id'], unique=False)
    op.create_index(op.f('ix_notifications_assignment_id'), 'notifications', ['assignment_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_notifications_assignment_id'), table_name='notifications')
    op.drop_index(op.f('ix_notifications_recipient_id'), table_name='notifications')
    op.drop_index(op.f('ix_notifications_church_id'), table_name='notifications')
    op.drop_table('notifications')

    op.drop_index(op.f('ix_volunteer_unavailability_end_date'), table_name='volunteer_unavailability')
    op.drop_index(op.f('ix_volunteer_unavailability_start_date'), table_name='volunteer_unavailability')
    op.drop_index(op.f('ix_volunteer_unavailability_profile_id'), table_name='volunteer_unavailability')
    op.drop_index(op.f('ix_volunteer_unavailability_church_id'), table_name='volunteer_unavailability')
    op.drop_table('volunteer_unavailability')

    op.drop_index(op.f('ix_event_assignments_status'), table_name='event_assignments')
    op.drop_index(op.f('ix_event_assignments_profile_id'), table_name='event_assignments')
    op.drop_index(op.f('ix_event_assignments_position_id'), table_name='event_assignments')
    op.drop_table('event_assignments')

    op.drop_index(op.f('ix_event_positions_ministry_id'), table_name='event_positions')
    op.drop_index(op.f('ix_event_positions_event_id'), table_name='event_positions')
    op.drop_table('event_positions')

    op.drop_index(op.f('ix_events_start_time'), table_name='events')
    op.drop_index(op.f('ix_events_church_id'), table_name='events')
    op.drop_table('events')

    op.drop_table('ministry_member_roles')

    op.drop_index(op.f('ix_ministry_members_profile_id'), table_name='ministry_members')
    op.drop_index(op.f('ix_ministry_members_ministry_id'), table_name='ministry_members')
    op.drop_table('ministry_members')

    op.drop_index(op.f('ix_ministry_roles_ministry_id'), table_name='ministry_roles')
    op.drop_table('ministry_roles')

    op.drop_index(op.f('ix_ministries_church_id'), table_name='ministries')
    op.drop_table('ministries')

    op.drop_index(op.f('ix_profiles_church_id'), table_name='profiles')
    op.drop_table('profiles')

    op.drop_table('churches')

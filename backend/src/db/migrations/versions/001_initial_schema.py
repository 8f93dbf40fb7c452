"""Initial scheduler schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

Creates profiles, events, event_profiles and event_audit_entries with:
- UUID columns backing the prf_/evt_ GUIDs
- CHECK (end_at > start_at) on events
- version column for optimistic concurrency
- Cascading deletes from events to their profile links and audit entries
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _uuid_type():
    return sa.LargeBinary(16).with_variant(postgresql.UUID(as_uuid=True), 'postgresql')


def _json_type():
    return sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    """
    Create scheduler tables.

    Tables:
    - profiles: Named owners with a preferred timezone
    - events: Scheduled events stored as UTC instants
    - event_profiles: Ordered weak profile references per event
    - event_audit_entries: Append-only per-event change history
    """
    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid_type(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_profiles_uuid', 'profiles', ['uuid'], unique=True)
    op.create_index('ix_profiles_created_at', 'profiles', ['created_at'])

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid_type(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('start_at', sa.DateTime(), nullable=False),
        sa.Column('end_at', sa.DateTime(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_by_guid', sa.String(length=30), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('end_at > start_at', name='ck_events_end_after_start'),
    )
    op.create_index('ix_events_uuid', 'events', ['uuid'], unique=True)
    op.create_index('ix_events_created_by_guid', 'events', ['created_by_guid'])
    op.create_index('idx_events_start_at', 'events', ['start_at'])

    op.create_table(
        'event_profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('profile_guid', sa.String(length=30), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('event_id', 'profile_guid', name='uq_event_profile'),
    )
    op.create_index('ix_event_profiles_event_id', 'event_profiles', ['event_id'])
    op.create_index('ix_event_profiles_profile_guid', 'event_profiles', ['profile_guid'])

    op.create_table(
        'event_audit_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('updated_by_guid', sa.String(length=30), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('perceived_timezone', sa.String(length=64), nullable=False),
        sa.Column('changes', _json_type(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('event_id', 'sequence', name='uq_event_audit_sequence'),
    )
    op.create_index('ix_event_audit_entries_event_id', 'event_audit_entries', ['event_id'])
    op.create_index('ix_event_audit_entries_updated_by_guid', 'event_audit_entries', ['updated_by_guid'])


def downgrade() -> None:
    """Drop scheduler tables in reverse dependency order."""
    op.drop_index('ix_event_audit_entries_updated_by_guid', table_name='event_audit_entries')
    op.drop_index('ix_event_audit_entries_event_id', table_name='event_audit_entries')
    op.drop_table('event_audit_entries')

    op.drop_index('ix_event_profiles_profile_guid', table_name='event_profiles')
    op.drop_index('ix_event_profiles_event_id', table_name='event_profiles')
    op.drop_table('event_profiles')

    op.drop_index('idx_events_start_at', table_name='events')
    op.drop_index('ix_events_created_by_guid', table_name='events')
    op.drop_index('ix_events_uuid', table_name='events')
    op.drop_table('events')

    op.drop_index('ix_profiles_created_at', table_name='profiles')
    op.drop_index('ix_profiles_uuid', table_name='profiles')
    op.drop_table('profiles')

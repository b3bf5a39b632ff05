"""Initial schema - books, ideas, practice, primers

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Books table
    op.create_table(
        'books',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False, index=True),
        sa.Column('author', sa.String(255), nullable=True),
        sa.Column('book_number', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_accessed', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Ideas table (string ids: "b1i3", legacy "i3")
    op.create_table(
        'ideas',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('book_id', sa.Uuid(), sa.ForeignKey('books.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('book_title', sa.String(500), nullable=False, server_default=''),
        sa.Column('depth_target', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('mastery_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_practiced', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_level', sa.Integer(), nullable=True),
        sa.Column('importance', sa.String(50), nullable=True),
        sa.Column('last_accessed', sa.DateTime(timezone=True), nullable=True),
    )

    # Progress table (one row per completed attempt)
    op.create_table(
        'progress',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('idea_id', sa.String(32), sa.ForeignKey('ideas.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False, index=True),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('mastery_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('completed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_progress_idea_level', 'progress', ['idea_id', 'level'])

    # Primers table (one per idea)
    op.create_table(
        'primers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('idea_id', sa.String(32), sa.ForeignKey('ideas.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False, unique=True),
        sa.Column('thesis', sa.Text(), nullable=False, server_default=''),
        sa.Column('story', sa.Text(), nullable=False, server_default=''),
        sa.Column('examples', sa.JSON(), nullable=False),
        sa.Column('use_it_when', sa.JSON(), nullable=False),
        sa.Column('how_to_apply', sa.JSON(), nullable=False),
        sa.Column('edges_and_limits', sa.JSON(), nullable=False),
        sa.Column('one_line_recall', sa.String(1000), nullable=False, server_default=''),
        sa.Column('further_learning', sa.JSON(), nullable=False),
        sa.Column('overview', sa.Text(), nullable=False, server_default=''),
        sa.Column('key_nuances', sa.JSON(), nullable=False),
        sa.Column('dig_deeper_links', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_accessed', sa.DateTime(timezone=True), nullable=True),
    )

    # Practice sessions table
    op.create_table(
        'practice_sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('idea_id', sa.String(32), nullable=False, index=True),
        sa.Column('book_id', sa.String(64), nullable=False, index=True),
        sa.Column('type', sa.String(50), nullable=False, server_default='lesson_practice'),
        sa.Column('status', sa.String(50), nullable=False, server_default='ready'),
        sa.Column('config_version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('config_data', sa.LargeBinary(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Tests table
    op.create_table(
        'tests',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('idea_id', sa.String(32), sa.ForeignKey('ideas.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=True, index=True),
        sa.Column('practice_session_id', sa.Uuid(), sa.ForeignKey('practice_sessions.id', ondelete='CASCADE'), nullable=True, unique=True),
        sa.Column('idea_title', sa.String(500), nullable=False, server_default=''),
        sa.Column('book_title', sa.String(500), nullable=False, server_default=''),
        sa.Column('test_type', sa.String(20), nullable=False, server_default='initial'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=True),
    )

    # User profiles table
    op.create_table(
        'user_profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, server_default=''),
        sa.Column('has_completed_initial_book_selection', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_opened_book_title', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Streak state (single row)
    op.create_table(
        'streak_state',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('best_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_active_day', sa.Date(), nullable=True),
    )

    # Credential store
    op.create_table(
        'auth_credentials',
        sa.Column('key', sa.String(100), primary_key=True),
        sa.Column('value', sa.String(500), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Event log (append-only)
    op.create_table(
        'event_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_type', sa.String(100), nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False, index=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_event_logs_entity', 'event_logs', ['entity_type', 'entity_id'])


def downgrade() -> None:
    op.drop_index('ix_event_logs_entity', table_name='event_logs')
    op.drop_table('event_logs')
    op.drop_table('auth_credentials')
    op.drop_table('streak_state')
    op.drop_table('user_profiles')
    op.drop_table('tests')
    op.drop_table('practice_sessions')
    op.drop_table('primers')
    op.drop_index('ix_progress_idea_level', table_name='progress')
    op.drop_table('progress')
    op.drop_table('ideas')
    op.drop_table('books')

"""Initial schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

Creates:
- users, badges and user_badges
- story structure: series, arcs, volumes, chapters
- cast and content: characters, organizations, memberships, gambles, tags,
  events, quotes and their link tables
- community submissions: guides, guide likes, annotations, media, chapter spoilers
- app_logs for the database log handler
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _link_table(name: str, left: tuple[str, str], right: tuple[str, str]) -> None:
    """Many-to-many table with a composite primary key and cascading deletes."""
    op.create_table(
        name,
        sa.Column(left[0], sa.Integer, sa.ForeignKey(left[1], ondelete='CASCADE'), primary_key=True),
        sa.Column(right[0], sa.Integer, sa.ForeignKey(right[1], ondelete='CASCADE'), primary_key=True),
    )


def upgrade() -> None:
    # ---- Users ----
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('username', sa.String(50), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('is_email_verified', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('email_verification_token', sa.String(128), nullable=True),
        sa.Column('password_reset_token', sa.String(128), nullable=True),
        sa.Column('password_reset_expires', sa.DateTime, nullable=True),
        sa.Column('refresh_token', sa.String(128), nullable=True),
        sa.Column('refresh_token_expires_at', sa.DateTime, nullable=True),
        sa.Column('user_progress', sa.Integer, nullable=False, server_default='0'),
        sa.Column('show_all_spoilers', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('chapter_tolerance', sa.Integer, nullable=False, server_default='0'),
        sa.Column('custom_role', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_users_role', 'users', ['role'])
    op.create_index('idx_users_refresh_token', 'users', ['refresh_token'])

    op.create_table(
        'badges',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('icon', sa.String(20), nullable=False),
        sa.Column('color', sa.String(20), nullable=False),
        sa.Column('background_color', sa.String(20), nullable=True),
        sa.Column('display_order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('is_manually_awardable', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )

    op.create_table(
        'user_badges',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('badge_id', sa.Integer, sa.ForeignKey('badges.id', ondelete='CASCADE'), nullable=False),
        sa.Column('awarded_at', sa.DateTime, nullable=False),
        sa.Column('expires_at', sa.DateTime, nullable=True),
        sa.Column('year', sa.Integer, nullable=True),
        sa.Column('reason', sa.Text, nullable=True),
        sa.Column('awarded_by_user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('revoked_at', sa.DateTime, nullable=True),
        sa.Column('revoked_reason', sa.Text, nullable=True),
        sa.Column('revoked_by_user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('idx_user_badges_user_active', 'user_badges', ['user_id', 'is_active'])

    # ---- Story structure ----
    op.create_table(
        'series',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('description', sa.Text, nullable=True),
    )

    op.create_table(
        'arcs',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('start_chapter', sa.Integer, nullable=True),
        sa.Column('end_chapter', sa.Integer, nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('series_id', sa.Integer, sa.ForeignKey('series.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('idx_arcs_name', 'arcs', ['name'])
    op.create_index('idx_arcs_order', 'arcs', ['order'])

    op.create_table(
        'volumes',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('number', sa.Integer, nullable=False, unique=True),
        sa.Column('start_chapter', sa.Integer, nullable=False),
        sa.Column('end_chapter', sa.Integer, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('cover_url', sa.String(500), nullable=True),
    )

    op.create_table(
        'chapters',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('number', sa.Integer, nullable=False, unique=True),
        sa.Column('title', sa.String(200), nullable=True),
        sa.Column('summary', sa.Text, nullable=True),
    )

    # ---- Cast and content ----
    op.create_table(
        'characters',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('alternate_names', sa.JSON, nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('first_appearance_chapter', sa.Integer, nullable=True),
        sa.Column('occupation', sa.String(200), nullable=True),
        sa.Column('notable_roles', sa.JSON, nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_characters_name', 'characters', ['name'])

    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(200), nullable=False, unique=True),
        sa.Column('description', sa.Text, nullable=True),
    )

    op.create_table(
        'character_organizations',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('character_id', sa.Integer, sa.ForeignKey('characters.id', ondelete='CASCADE'), nullable=False),
        sa.Column('organization_id', sa.Integer, sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(100), nullable=False),
        sa.Column('start_chapter', sa.Integer, nullable=False),
        sa.Column('end_chapter', sa.Integer, nullable=True),
        sa.Column('spoiler_chapter', sa.Integer, nullable=False),
        sa.Column('notes', sa.Text, nullable=True),
        sa.UniqueConstraint('character_id', 'organization_id', 'role', name='uq_character_org_role'),
    )

    op.create_table(
        'gambles',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('rules', sa.Text, nullable=True),
        sa.Column('win_condition', sa.Text, nullable=True),
        sa.Column('chapter_number', sa.Integer, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    _link_table('gamble_participants', ('gamble_id', 'gambles.id'), ('character_id', 'characters.id'))

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
        sa.Column('description', sa.Text, nullable=True),
    )

    op.create_table(
        'events',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('type', sa.String(20), nullable=False, server_default='decision'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('chapter_number', sa.Integer, nullable=False),
        sa.Column('spoiler_chapter', sa.Integer, nullable=True),
        sa.Column('page_numbers', sa.JSON, nullable=True),
        sa.Column('is_verified', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('rejection_reason', sa.String(500), nullable=True),
        sa.Column('arc_id', sa.Integer, sa.ForeignKey('arcs.id', ondelete='SET NULL'), nullable=True),
        sa.Column('gamble_id', sa.Integer, sa.ForeignKey('gambles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by_id', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_events_arc', 'events', ['arc_id'])
    op.create_index('idx_events_chapter', 'events', ['chapter_number'])
    op.create_index('idx_events_type', 'events', ['type'])
    op.create_index('idx_events_status', 'events', ['status'])
    op.create_index('idx_events_spoiler_chapter', 'events', ['spoiler_chapter'])
    op.create_index('idx_events_created_by', 'events', ['created_by_id'])
    _link_table('event_characters', ('event_id', 'events.id'), ('character_id', 'characters.id'))
    _link_table('event_tags', ('event_id', 'events.id'), ('tag_id', 'tags.id'))

    op.create_table(
        'quotes',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('text', sa.Text, nullable=False),
        sa.Column('chapter_number', sa.Integer, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('page_number', sa.Integer, nullable=True),
        sa.Column('character_id', sa.Integer, sa.ForeignKey('characters.id', ondelete='CASCADE'), nullable=False),
        sa.Column('submitted_by_id', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )

    # ---- Community submissions ----
    op.create_table(
        'guides',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('view_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('like_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('rejection_reason', sa.String(500), nullable=True),
        sa.Column('author_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('arc_id', sa.Integer, sa.ForeignKey('arcs.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_guides_status', 'guides', ['status'])
    op.create_index('idx_guides_author', 'guides', ['author_id'])
    _link_table('guide_tags', ('guide_id', 'guides.id'), ('tag_id', 'tags.id'))
    _link_table('guide_characters', ('guide_id', 'guides.id'), ('character_id', 'characters.id'))
    _link_table('guide_gambles', ('guide_id', 'guides.id'), ('gamble_id', 'gambles.id'))

    op.create_table(
        'guide_likes',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('guide_id', sa.Integer, sa.ForeignKey('guides.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('user_id', 'guide_id', name='uq_guide_like_user_guide'),
    )

    op.create_table(
        'annotations',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('owner_type', sa.String(20), nullable=False),
        sa.Column('owner_id', sa.Integer, nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('source_url', sa.String(500), nullable=True),
        sa.Column('chapter_reference', sa.Integer, nullable=True),
        sa.Column('is_spoiler', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('spoiler_chapter', sa.Integer, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('rejection_reason', sa.String(500), nullable=True),
        sa.Column('author_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_annotations_owner', 'annotations', ['owner_type', 'owner_id'])
    op.create_index('idx_annotations_status', 'annotations', ['status'])

    op.create_table(
        'media',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('url', sa.String(2000), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('owner_type', sa.String(20), nullable=False),
        sa.Column('owner_id', sa.Integer, nullable=False),
        sa.Column('chapter_number', sa.Integer, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('rejection_reason', sa.String(500), nullable=True),
        sa.Column('submitted_by_id', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_media_owner', 'media', ['owner_type', 'owner_id'])
    op.create_index('idx_media_status', 'media', ['status'])

    op.create_table(
        'chapter_spoilers',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('event_id', sa.Integer, sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('chapter_id', sa.Integer, sa.ForeignKey('chapters.id', ondelete='CASCADE'), nullable=False),
        sa.Column('level', sa.String(20), nullable=False, server_default='reveal'),
        sa.Column('category', sa.String(20), nullable=False, server_default='plot'),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('is_verified', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('minimum_chapter', sa.Integer, nullable=False),
        sa.Column('requirement_explanation', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    _link_table('chapter_spoiler_requirements', ('chapter_spoiler_id', 'chapter_spoilers.id'), ('chapter_id', 'chapters.id'))
    _link_table('chapter_spoiler_characters', ('chapter_spoiler_id', 'chapter_spoilers.id'), ('character_id', 'characters.id'))

    # ---- Operations ----
    op.create_table(
        'app_logs',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('timestamp', sa.DateTime, nullable=False),
        sa.Column('level', sa.String(10), nullable=False),  # DEBUG, INFO, WARNING, ERROR
        sa.Column('source', sa.String(20), nullable=False, server_default='backend'),
        sa.Column('module', sa.String(200), nullable=True),  # Logger name
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('extra_data', sa.JSON, nullable=True),
        sa.Column('correlation_id', sa.String(64), nullable=True),
    )
    op.create_index('idx_app_logs_timestamp', 'app_logs', ['timestamp'])
    op.create_index('idx_app_logs_level', 'app_logs', ['level'])


def downgrade() -> None:
    for table in (
        'app_logs',
        'chapter_spoiler_characters', 'chapter_spoiler_requirements', 'chapter_spoilers',
        'media', 'annotations', 'guide_likes',
        'guide_gambles', 'guide_characters', 'guide_tags', 'guides',
        'quotes', 'event_tags', 'event_characters', 'events', 'tags',
        'gamble_participants', 'gambles', 'character_organizations', 'organizations', 'characters',
        'chapters', 'volumes', 'arcs', 'series',
        'user_badges', 'badges', 'users',
    ):
        op.drop_table(table)

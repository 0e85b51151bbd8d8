"""
SQLAlchemy ORM models for the fan database.

Content tables (series, arcs, volumes, chapters, characters, organizations,
gambles, events, quotes, tags) are curated by moderators. Community tables
(guides, annotations, media, chapter spoilers, event submissions) go through
the pending -> approved / rejected moderation workflow.

Column types are kept portable (generic JSON, string status columns) so the
same metadata runs on PostgreSQL in production and SQLite in tests.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Boolean, Text, DateTime,
    ForeignKey, JSON, Index, Table, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from fansite.db.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ============ Enumerations ============

class UserRole(str, enum.Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class ModerationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EventType(str, enum.Enum):
    GAMBLE = "gamble"
    DECISION = "decision"
    REVEAL = "reveal"
    SHIFT = "shift"
    RESOLUTION = "resolution"


class SpoilerLevel(str, enum.Enum):
    REVEAL = "reveal"      # backgrounds and identities
    OUTCOME = "outcome"    # results that change the story
    TWIST = "twist"        # betrayals, setups
    FATE = "fate"          # deaths and life-changing events


class SpoilerCategory(str, enum.Enum):
    PLOT = "plot"
    CHARACTER = "character"
    PLOT_TWIST = "plot_twist"


class AnnotationOwnerType(str, enum.Enum):
    CHARACTER = "character"
    GAMBLE = "gamble"
    CHAPTER = "chapter"
    ARC = "arc"


class MediaType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


class MediaOwnerType(str, enum.Enum):
    CHARACTER = "character"
    ARC = "arc"
    EVENT = "event"
    GAMBLE = "gamble"
    ORGANIZATION = "organization"
    VOLUME = "volume"
    USER = "user"


class BadgeType(str, enum.Enum):
    SUPPORTER = "supporter"
    ACTIVE_SUPPORTER = "active_supporter"
    SPONSOR = "sponsor"
    CUSTOM = "custom"


# ============ Association tables ============

event_characters = Table(
    "event_characters",
    Base.metadata,
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("character_id", Integer, ForeignKey("characters.id", ondelete="CASCADE"), primary_key=True),
)

event_tags = Table(
    "event_tags",
    Base.metadata,
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

gamble_participants = Table(
    "gamble_participants",
    Base.metadata,
    Column("gamble_id", Integer, ForeignKey("gambles.id", ondelete="CASCADE"), primary_key=True),
    Column("character_id", Integer, ForeignKey("characters.id", ondelete="CASCADE"), primary_key=True),
)

guide_tags = Table(
    "guide_tags",
    Base.metadata,
    Column("guide_id", Integer, ForeignKey("guides.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

guide_characters = Table(
    "guide_characters",
    Base.metadata,
    Column("guide_id", Integer, ForeignKey("guides.id", ondelete="CASCADE"), primary_key=True),
    Column("character_id", Integer, ForeignKey("characters.id", ondelete="CASCADE"), primary_key=True),
)

guide_gambles = Table(
    "guide_gambles",
    Base.metadata,
    Column("guide_id", Integer, ForeignKey("guides.id", ondelete="CASCADE"), primary_key=True),
    Column("gamble_id", Integer, ForeignKey("gambles.id", ondelete="CASCADE"), primary_key=True),
)

chapter_spoiler_requirements = Table(
    "chapter_spoiler_requirements",
    Base.metadata,
    Column("chapter_spoiler_id", Integer, ForeignKey("chapter_spoilers.id", ondelete="CASCADE"), primary_key=True),
    Column("chapter_id", Integer, ForeignKey("chapters.id", ondelete="CASCADE"), primary_key=True),
)

chapter_spoiler_characters = Table(
    "chapter_spoiler_characters",
    Base.metadata,
    Column("chapter_spoiler_id", Integer, ForeignKey("chapter_spoilers.id", ondelete="CASCADE"), primary_key=True),
    Column("character_id", Integer, ForeignKey("characters.id", ondelete="CASCADE"), primary_key=True),
)


# ============ Users ============

class User(Base):
    """Registered account. Reading progress drives spoiler visibility."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    email_verification_token = Column(String(128))
    password_reset_token = Column(String(128))
    password_reset_expires = Column(DateTime)
    refresh_token = Column(String(128))
    refresh_token_expires_at = Column(DateTime)
    user_progress = Column(Integer, nullable=False, default=0)  # last chapter read
    show_all_spoilers = Column(Boolean, nullable=False, default=False)
    chapter_tolerance = Column(Integer, nullable=False, default=0)  # 0 = use user_progress
    custom_role = Column(String(50))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_users_role", "role"),
        Index("idx_users_refresh_token", "refresh_token"),
    )


class Badge(Base):
    """Profile badge definitions."""

    __tablename__ = "badges"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text)
    type = Column(String(30), nullable=False)
    icon = Column(String(20), nullable=False)
    color = Column(String(20), nullable=False)
    background_color = Column(String(20))
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    is_manually_awardable = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)


class UserBadge(Base):
    """A badge held by a user, optionally expiring."""

    __tablename__ = "user_badges"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id = Column(Integer, ForeignKey("badges.id", ondelete="CASCADE"), nullable=False)
    awarded_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime)
    year = Column(Integer)
    reason = Column(Text)
    awarded_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    is_active = Column(Boolean, nullable=False, default=True)
    revoked_at = Column(DateTime)
    revoked_reason = Column(Text)
    revoked_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    badge = relationship("Badge", lazy="selectin")

    __table_args__ = (
        Index("idx_user_badges_user_active", "user_id", "is_active"),
    )


# ============ Story structure ============

class Series(Base):
    __tablename__ = "series"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    order = Column(Integer, nullable=False, default=0)
    description = Column(Text)


class Arc(Base):
    """A named range of chapters."""

    __tablename__ = "arcs"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    order = Column(Integer, nullable=False, default=0)
    description = Column(Text)
    start_chapter = Column(Integer)
    end_chapter = Column(Integer)
    image_url = Column(String(500))
    series_id = Column(Integer, ForeignKey("series.id", ondelete="SET NULL"))

    __table_args__ = (
        Index("idx_arcs_name", "name"),
        Index("idx_arcs_order", "order"),
    )


class Volume(Base):
    __tablename__ = "volumes"

    id = Column(Integer, primary_key=True)
    number = Column(Integer, nullable=False, unique=True)
    start_chapter = Column(Integer, nullable=False)
    end_chapter = Column(Integer, nullable=False)
    description = Column(Text)
    cover_url = Column(String(500))


class Chapter(Base):
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True)
    number = Column(Integer, nullable=False, unique=True)
    title = Column(String(200))
    summary = Column(Text)


# ============ Cast ============

class Character(Base):
    __tablename__ = "characters"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    alternate_names = Column(JSON)
    description = Column(Text)
    first_appearance_chapter = Column(Integer)
    occupation = Column(String(200))
    notable_roles = Column(JSON)
    image_url = Column(String(500))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_characters_name", "name"),
    )


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text)

    memberships = relationship(
        "CharacterOrganization",
        back_populates="organization",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class CharacterOrganization(Base):
    """Membership of a character in an organization over a chapter range."""

    __tablename__ = "character_organizations"

    id = Column(Integer, primary_key=True)
    character_id = Column(Integer, ForeignKey("characters.id", ondelete="CASCADE"), nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(100), nullable=False)
    start_chapter = Column(Integer, nullable=False)
    end_chapter = Column(Integer)
    spoiler_chapter = Column(Integer, nullable=False)
    notes = Column(Text)

    character = relationship("Character", lazy="selectin")
    organization = relationship("Organization", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("character_id", "organization_id", "role", name="uq_character_org_role"),
    )


class Gamble(Base):
    __tablename__ = "gambles"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    rules = Column(Text)
    win_condition = Column(Text)
    chapter_number = Column(Integer)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    participants = relationship("Character", secondary=gamble_participants, lazy="selectin")


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False, unique=True)
    description = Column(Text)


class Event(Base):
    """A story beat tied to a chapter. User submissions start pending."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default=EventType.DECISION.value)
    status = Column(String(20), nullable=False, default=ModerationStatus.PENDING.value)
    chapter_number = Column(Integer, nullable=False)
    spoiler_chapter = Column(Integer)  # must have read this far before seeing it
    page_numbers = Column(JSON)
    is_verified = Column(Boolean, nullable=False, default=False)
    rejection_reason = Column(String(500))
    arc_id = Column(Integer, ForeignKey("arcs.id", ondelete="SET NULL"))
    gamble_id = Column(Integer, ForeignKey("gambles.id", ondelete="SET NULL"))
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    arc = relationship("Arc", lazy="selectin")
    gamble = relationship("Gamble", lazy="selectin")
    characters = relationship("Character", secondary=event_characters, lazy="selectin")
    tags = relationship("Tag", secondary=event_tags, lazy="selectin")

    __table_args__ = (
        Index("idx_events_arc", "arc_id"),
        Index("idx_events_chapter", "chapter_number"),
        Index("idx_events_type", "type"),
        Index("idx_events_status", "status"),
        Index("idx_events_spoiler_chapter", "spoiler_chapter"),
        Index("idx_events_created_by", "created_by_id"),
    )


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True)
    text = Column(Text, nullable=False)
    chapter_number = Column(Integer, nullable=False)
    description = Column(Text)
    page_number = Column(Integer)
    character_id = Column(Integer, ForeignKey("characters.id", ondelete="CASCADE"), nullable=False)
    submitted_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=utcnow)

    character = relationship("Character", lazy="selectin")


# ============ Community submissions ============

class Guide(Base):
    __tablename__ = "guides"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=ModerationStatus.PENDING.value)
    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    rejection_reason = Column(String(500))
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    arc_id = Column(Integer, ForeignKey("arcs.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    author = relationship("User", lazy="selectin")
    arc = relationship("Arc", lazy="selectin")
    tags = relationship("Tag", secondary=guide_tags, lazy="selectin")
    characters = relationship("Character", secondary=guide_characters, lazy="selectin")
    gambles = relationship("Gamble", secondary=guide_gambles, lazy="selectin")

    __table_args__ = (
        Index("idx_guides_status", "status"),
        Index("idx_guides_author", "author_id"),
    )


class GuideLike(Base):
    __tablename__ = "guide_likes"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    guide_id = Column(Integer, ForeignKey("guides.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "guide_id", name="uq_guide_like_user_guide"),
    )


class Annotation(Base):
    """Supplementary note attached to a character, gamble, chapter or arc."""

    __tablename__ = "annotations"

    id = Column(Integer, primary_key=True)
    owner_type = Column(String(20), nullable=False)
    owner_id = Column(Integer, nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    source_url = Column(String(500))
    chapter_reference = Column(Integer)
    is_spoiler = Column(Boolean, nullable=False, default=False)
    spoiler_chapter = Column(Integer)
    status = Column(String(20), nullable=False, default=ModerationStatus.PENDING.value)
    rejection_reason = Column(String(500))
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    author = relationship("User", lazy="selectin")

    __table_args__ = (
        Index("idx_annotations_owner", "owner_type", "owner_id"),
        Index("idx_annotations_status", "status"),
    )


class Media(Base):
    """Externally hosted image/video/audio attached to an entity."""

    __tablename__ = "media"

    id = Column(Integer, primary_key=True)
    url = Column(String(2000), nullable=False)
    type = Column(String(10), nullable=False)
    description = Column(String(500))
    owner_type = Column(String(20), nullable=False)
    owner_id = Column(Integer, nullable=False)
    chapter_number = Column(Integer)
    status = Column(String(20), nullable=False, default=ModerationStatus.PENDING.value)
    rejection_reason = Column(String(500))
    submitted_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("idx_media_owner", "owner_type", "owner_id"),
        Index("idx_media_status", "status"),
    )


class ChapterSpoiler(Base):
    """Spoiler note with the chapters a reader must have finished to see it."""

    __tablename__ = "chapter_spoilers"

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False)
    level = Column(String(20), nullable=False, default=SpoilerLevel.REVEAL.value)
    category = Column(String(20), nullable=False, default=SpoilerCategory.PLOT.value)
    description = Column(Text, nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    minimum_chapter = Column(Integer, nullable=False)
    requirement_explanation = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    event = relationship("Event", lazy="selectin")
    chapter = relationship("Chapter", lazy="selectin")
    additional_requirements = relationship("Chapter", secondary=chapter_spoiler_requirements, lazy="selectin")
    affected_characters = relationship("Character", secondary=chapter_spoiler_characters, lazy="selectin")


# ============ Operations ============

class AppLog(Base):
    """Application log rows written by the DB log handler."""

    __tablename__ = "app_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow)
    level = Column(String(10), nullable=False)
    source = Column(String(20), nullable=False, default="backend")
    module = Column(String(200))
    message = Column(Text, nullable=False)
    extra_data = Column(JSON)
    correlation_id = Column(String(64))

    __table_args__ = (
        Index("idx_app_logs_timestamp", "timestamp"),
        Index("idx_app_logs_level", "level"),
    )

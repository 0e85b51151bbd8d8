"""
Reference data for a fresh database.

Each seeder runs in its own session and transaction and skips rows that
already exist, so `scripts/seed.py` can be re-run safely.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.config import get_settings
from fansite.core.security import hash_password
from fansite.db.database import async_session
from fansite.db.models import (
    Arc, Badge, BadgeType, Chapter, Character, CharacterOrganization,
    Organization, Series, Tag, User, UserRole, Volume,
)

logger = logging.getLogger(__name__)

SERIES_NAME = "Usogui"

ARCS = [
    {
        "name": "Introduction Arc",
        "order": 0,
        "description": "Introduction to the world of underground gambling and Baku Madarame's unique abilities. "
                       "This arc establishes the foundation of the story, introducing key characters, the concept "
                       "of lie detection, and the dangerous nature of high-stakes gambling.",
        "start_chapter": 1,
        "end_chapter": 10,
    },
    {
        "name": "Kakerou Initiation Arc",
        "order": 1,
        "description": "Baku's formal introduction to the Kakerou organization and its complex hierarchy. He learns "
                       "about the rules, consequences, and opportunities within this underground gambling syndicate.",
        "start_chapter": 11,
        "end_chapter": 25,
    },
    {
        "name": "First Tournament Arc",
        "order": 2,
        "description": "Baku participates in his first major tournament, facing skilled opponents and learning the "
                       "true depths of psychological warfare in gambling.",
        "start_chapter": 26,
        "end_chapter": 45,
    },
    {
        "name": "Protoporos Arc",
        "order": 3,
        "description": "A complex gambling game involving mathematical strategy and psychological manipulation.",
        "start_chapter": 46,
        "end_chapter": 65,
    },
    {
        "name": "Character Development Arc",
        "order": 4,
        "description": "Focus on character backstories and relationships. Key character motivations are revealed, "
                       "and the bonds between allies are tested and strengthened.",
        "start_chapter": 66,
        "end_chapter": 85,
    },
    {
        "name": "High Stakes Tournament Arc",
        "order": 5,
        "description": "A major tournament with life-or-death consequences. Multiple factions compete, and the "
                       "stakes reach unprecedented levels.",
        "start_chapter": 86,
        "end_chapter": 120,
    },
]

VOLUMES = [
    {"number": 1, "start_chapter": 1, "end_chapter": 10,
     "description": "Introduction to Baku Madarame and the underground gambling world"},
    {"number": 2, "start_chapter": 11, "end_chapter": 20,
     "description": "Baku faces his first serious challenge in the gambling underworld"},
]

CHAPTERS = [
    (1, "The Lie Eater", "Introduction to Baku Madarame, a young man with the uncanny ability to detect lies. "
                         "He enters the world of underground gambling through the organization known as Kakerou."),
    (2, "First Gamble", "Baku takes on his first opponent in a high-stakes match."),
    (3, "The Rules of Engagement", "The rules and hierarchy of underground gambling are revealed."),
    (4, "Stakes Rise", "The stakes escalate as Baku faces increasingly dangerous opponents."),
    (5, "Meeting Marco", "Baku encounters Marco Reiji, who becomes an important ally."),
    (6, "Trust and Betrayal", "Trust becomes central in a world where betrayal can be fatal."),
    (7, "Psychological Warfare", "Baku uses his lie detection to gain advantages in complex games."),
    (8, "The Broker Appears", "Introduction to Kyara Kujaku, the information broker who plays multiple sides."),
    (9, "Double-Edged Games", "A gamble with multiple layers of deception tests Baku's abilities to their limits."),
    (10, "End of Innocence", "Baku fully commits to the dangerous path of underground gambling."),
]

CHARACTERS = [
    {
        "name": "Baku Madarame",
        "alternate_names": ["The Lie Eater", "Mad Dog"],
        "description": "The main protagonist, known for his ability to see through deception and his exceptional "
                       "gambling skills.",
        "first_appearance_chapter": 1,
        "notable_roles": ["Kakerou Member", "Professional Gambler", "Lie Detector"],
    },
    {
        "name": "Marco Reiji",
        "alternate_names": ["The Young Gun"],
        "description": "A skilled gambler who becomes one of Baku's closest allies.",
        "first_appearance_chapter": 5,
        "notable_roles": ["Professional Gambler", "Strategist"],
    },
    {
        "name": "Kyara Kujaku",
        "alternate_names": ["The Broker"],
        "description": "A cunning information broker who plays multiple sides.",
        "first_appearance_chapter": 8,
        "notable_roles": ["Information Broker", "Manipulator"],
    },
    {
        "name": "Sadakuni Ikki",
        "alternate_names": ["Leader"],
        "description": "The leader of Kakerou, who oversees the organization's operations.",
        "first_appearance_chapter": 12,
        "notable_roles": ["Kakerou Leader", "Organization Head"],
    },
    {
        "name": "Hal Arimura",
        "alternate_names": ["The Calculator"],
        "description": "A mathematical genius who excels at games requiring probability analysis.",
        "first_appearance_chapter": 15,
        "notable_roles": ["Mathematician", "Strategic Advisor"],
    },
    {
        "name": "Mako Obara",
        "alternate_names": ["The Analyst"],
        "description": "A careful observer who supports Baku's team with analysis of opponents.",
        "first_appearance_chapter": 20,
        "notable_roles": ["Analyst", "Support Member"],
    },
]

ORGANIZATIONS = [
    ("Kakerou", "A secret organization that oversees high-stakes gambling. Members are bound by strict rules "
                "and face severe consequences for betrayal."),
    ("IDEAL", "A powerful criminal organization operating gambling, smuggling and information trading."),
    ("Clan", "A yakuza organization involved in underground gambling and territorial disputes."),
    ("Independent Gamblers", "Freelance gamblers who don't belong to any specific organization."),
    ("Police Force", "Law enforcement officers investigating, or secretly involved in, the underground."),
]

# (character, organization, role, start chapter, spoiler chapter)
MEMBERSHIPS = [
    ("Baku Madarame", "Kakerou", "Member", 11, 11),
    ("Marco Reiji", "Kakerou", "Member", 11, 11),
    ("Sadakuni Ikki", "Kakerou", "Leader", 12, 12),
]

TAGS = [
    ("Gamble Breakdown", "Analysis of gambling mechanics, rules, and strategies"),
    ("Character Study", "Deep dives into character psychology and motivations"),
    ("Plot Analysis", "Story structure, arcs, foreshadowing, and twists"),
]

BADGES = [
    {"name": "Supporter", "description": "Awarded to supporters who have made a donation",
     "type": BadgeType.SUPPORTER, "icon": "💎", "color": "#FFD700", "background_color": "#1A1A1A",
     "display_order": 1, "is_manually_awardable": False},
    {"name": "Active Supporter", "description": "Active supporter with donation in the last year",
     "type": BadgeType.ACTIVE_SUPPORTER, "icon": "⭐", "color": "#00FF00", "background_color": "#0D1B2A",
     "display_order": 2, "is_manually_awardable": False},
    {"name": "Sponsor", "description": "Generous sponsor with $25+ in total donations",
     "type": BadgeType.SPONSOR, "icon": "👑", "color": "#FF6B35", "background_color": "#2D1B69",
     "display_order": 3, "is_manually_awardable": False},
    {"name": "Community Hero", "description": "Outstanding contribution to the community",
     "type": BadgeType.CUSTOM, "icon": "🏆", "color": "#FFA500", "background_color": "#8B0000",
     "display_order": 10, "is_manually_awardable": True},
    {"name": "Beta Tester", "description": "Helped test new features and improvements",
     "type": BadgeType.CUSTOM, "icon": "🧪", "color": "#9370DB", "background_color": "#191970",
     "display_order": 11, "is_manually_awardable": True},
    {"name": "Content Creator", "description": "Created exceptional guides, media, or content",
     "type": BadgeType.CUSTOM, "icon": "✍️", "color": "#20B2AA", "background_color": "#2F4F4F",
     "display_order": 12, "is_manually_awardable": True},
    {"name": "Early Supporter", "description": "Supported the site in its early days",
     "type": BadgeType.CUSTOM, "icon": "🌟", "color": "#FFB6C1", "background_color": "#8B008B",
     "display_order": 13, "is_manually_awardable": True},
    {"name": "Moderator", "description": "Helps moderate and maintain the community",
     "type": BadgeType.CUSTOM, "icon": "🛡️", "color": "#32CD32", "background_color": "#006400",
     "display_order": 5, "is_manually_awardable": True},
    {"name": "Administrator", "description": "Site administrator",
     "type": BadgeType.CUSTOM, "icon": "⚙️", "color": "#FF4500", "background_color": "#8B0000",
     "display_order": 1, "is_manually_awardable": True},
]


async def _existing(db: AsyncSession, column) -> set:
    return set((await db.execute(select(column))).scalars().all())


async def seed_series(db: AsyncSession) -> int:
    if SERIES_NAME in await _existing(db, Series.name):
        return 0
    db.add(Series(name=SERIES_NAME, order=0, description="In a world where gambling is life..."))
    return 1


async def seed_arcs(db: AsyncSession) -> int:
    existing = await _existing(db, Arc.name)
    series_id = (await db.execute(select(Series.id).where(Series.name == SERIES_NAME))).scalar_one_or_none()
    new = [Arc(series_id=series_id, **arc) for arc in ARCS if arc["name"] not in existing]
    db.add_all(new)
    return len(new)


async def seed_volumes(db: AsyncSession) -> int:
    existing = await _existing(db, Volume.number)
    new = [Volume(**volume) for volume in VOLUMES if volume["number"] not in existing]
    db.add_all(new)
    return len(new)


async def seed_chapters(db: AsyncSession) -> int:
    existing = await _existing(db, Chapter.number)
    new = [
        Chapter(number=number, title=title, summary=summary)
        for number, title, summary in CHAPTERS
        if number not in existing
    ]
    db.add_all(new)
    return len(new)


async def seed_characters(db: AsyncSession) -> int:
    existing = await _existing(db, Character.name)
    new = [Character(**character) for character in CHARACTERS if character["name"] not in existing]
    db.add_all(new)
    return len(new)


async def seed_organizations(db: AsyncSession) -> int:
    existing = await _existing(db, Organization.name)
    new = [Organization(name=name, description=desc) for name, desc in ORGANIZATIONS if name not in existing]
    db.add_all(new)
    await db.flush()

    characters = {c.name: c.id for c in (await db.execute(select(Character))).scalars().all()}
    organizations = {o.name: o.id for o in (await db.execute(select(Organization))).scalars().all()}
    memberships = set(
        (await db.execute(
            select(
                CharacterOrganization.character_id,
                CharacterOrganization.organization_id,
                CharacterOrganization.role,
            )
        )).all()
    )
    for character, organization, role, start, spoiler in MEMBERSHIPS:
        key = (characters.get(character), organizations.get(organization), role)
        if None in key or key in memberships:
            continue
        db.add(CharacterOrganization(
            character_id=key[0],
            organization_id=key[1],
            role=role,
            start_chapter=start,
            spoiler_chapter=spoiler,
        ))
    return len(new)


async def seed_tags(db: AsyncSession) -> int:
    existing = await _existing(db, Tag.name)
    new = [Tag(name=name, description=desc) for name, desc in TAGS if name not in existing]
    db.add_all(new)
    return len(new)


async def seed_badges(db: AsyncSession) -> int:
    count = (await db.execute(select(func.count()).select_from(Badge))).scalar_one()
    if count:
        return 0
    db.add_all(Badge(**{**badge, "type": badge["type"].value}) for badge in BADGES)
    return len(BADGES)


async def seed_admin(db: AsyncSession) -> int:
    settings = get_settings()
    if not settings.seed_admin_password:
        logger.info("SEED_ADMIN_PASSWORD not set - skipping admin account")
        return 0
    existing = await db.execute(
        select(User.id).where(
            (User.email == settings.seed_admin_email) | (User.username == settings.seed_admin_username)
        )
    )
    if existing.first():
        return 0
    db.add(User(
        username=settings.seed_admin_username,
        email=settings.seed_admin_email,
        password_hash=hash_password(settings.seed_admin_password),
        role=UserRole.ADMIN.value,
        is_email_verified=True,
    ))
    return 1


SEEDERS = [
    seed_series,
    seed_arcs,
    seed_volumes,
    seed_chapters,
    seed_characters,
    seed_organizations,
    seed_tags,
    seed_badges,
    seed_admin,
]


async def run_seeders(session_factory=async_session) -> bool:
    """Run every seeder in order; stops at the first failure."""
    for seeder in SEEDERS:
        name = seeder.__name__
        try:
            async with session_factory() as db:
                created = await seeder(db)
                await db.commit()
        except Exception as e:
            logger.error(f"{name} failed: {e}", exc_info=True)
            return False
        if created:
            logger.info(f"{name}: created {created} rows")
        else:
            logger.info(f"{name}: nothing to do")
    return True

"""Spoiler visibility rules.

These helpers are dependency-free so the same predicates can back the SQL
filters in the services, the per-event flags on the arc timeline and the
visibility endpoint.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SpoilerSettings:
    """Per-user overrides of the stored reading progress."""
    show_all_spoilers: bool = False
    chapter_tolerance: int = 0


def effective_progress(user_progress: int, settings: SpoilerSettings) -> int:
    """Chapter the reader counts as having reached.

    A positive chapter tolerance replaces the stored progress outright.
    """
    if settings.chapter_tolerance > 0:
        return settings.chapter_tolerance
    return user_progress


def should_hide_spoiler(
    chapter_number: int | None,
    user_progress: int,
    settings: SpoilerSettings | None = None,
) -> bool:
    """True when content from `chapter_number` is past the reader's progress.

    Content without a chapter number is never hidden.
    """
    settings = settings or SpoilerSettings()
    if settings.show_all_spoilers:
        return False
    if not chapter_number:
        return False
    return chapter_number > effective_progress(user_progress, settings)


def is_viewable(spoiler_chapter: int | None, user_progress: int | None) -> bool:
    """Row-level filter used by list endpoints taking `userProgress`."""
    if spoiler_chapter is None or user_progress is None:
        return True
    return spoiler_chapter <= user_progress


def spoiler_label(chapter_number: int | None, progress: int) -> str:
    """Tooltip text shown over hidden content."""
    if chapter_number:
        return f"Chapter {chapter_number} spoiler - You're at Chapter {progress}. Click to reveal."
    return "Spoiler content. Click to reveal."


def settings_for_user(user) -> tuple[int, SpoilerSettings]:
    """(progress, settings) for a user row; anonymous readers have read nothing."""
    if user is None:
        return 0, SpoilerSettings()
    return user.user_progress or 0, SpoilerSettings(
        show_all_spoilers=bool(user.show_all_spoilers),
        chapter_tolerance=user.chapter_tolerance or 0,
    )

from types import SimpleNamespace

from fansite.services.spoilers import (
    SpoilerSettings,
    effective_progress,
    is_viewable,
    settings_for_user,
    should_hide_spoiler,
    spoiler_label,
)


def test_content_past_progress_is_hidden():
    assert should_hide_spoiler(chapter_number=51, user_progress=50) is True
    assert should_hide_spoiler(chapter_number=50, user_progress=50) is False
    assert should_hide_spoiler(chapter_number=12, user_progress=50) is False


def test_content_without_chapter_is_never_hidden():
    assert should_hide_spoiler(chapter_number=None, user_progress=0) is False
    assert should_hide_spoiler(chapter_number=0, user_progress=0) is False


def test_show_all_spoilers_wins_over_progress():
    settings = SpoilerSettings(show_all_spoilers=True)
    assert should_hide_spoiler(chapter_number=500, user_progress=1, settings=settings) is False


def test_chapter_tolerance_replaces_stored_progress():
    # Tolerance is an absolute chapter, not an offset added to progress
    settings = SpoilerSettings(chapter_tolerance=10)
    assert effective_progress(100, settings) == 10
    assert should_hide_spoiler(chapter_number=50, user_progress=100, settings=settings) is True
    assert effective_progress(100, SpoilerSettings()) == 100


def test_is_viewable_treats_missing_values_as_visible():
    assert is_viewable(spoiler_chapter=None, user_progress=3) is True
    assert is_viewable(spoiler_chapter=20, user_progress=None) is True
    assert is_viewable(spoiler_chapter=20, user_progress=20) is True
    assert is_viewable(spoiler_chapter=21, user_progress=20) is False


def test_spoiler_label_mentions_both_chapters():
    assert spoiler_label(120, 80) == "Chapter 120 spoiler - You're at Chapter 80. Click to reveal."
    assert spoiler_label(None, 80) == "Spoiler content. Click to reveal."


def test_anonymous_readers_have_read_nothing():
    progress, settings = settings_for_user(None)
    assert progress == 0
    assert settings == SpoilerSettings()


def test_settings_for_user_reads_profile_flags():
    user = SimpleNamespace(user_progress=None, show_all_spoilers=True, chapter_tolerance=None)
    progress, settings = settings_for_user(user)
    assert progress == 0
    assert settings.show_all_spoilers is True
    assert settings.chapter_tolerance == 0

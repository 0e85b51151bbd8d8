from fansite.db.models import Chapter, Event, ModerationStatus
from fansite.services.chapter_spoiler_service import can_view


def test_can_view_requires_minimum_chapter_and_every_requirement():
    assert can_view(2, [3], [1, 2, 3]) is True
    assert can_view(2, [3], [1, 2]) is False
    assert can_view(2, [], [1]) is False
    assert can_view(None, [], []) is True


async def _spoiler_fixture(client, add, user, auth_headers):
    chapters = await add(Chapter(number=1), Chapter(number=2), Chapter(number=3))
    event = await add(Event(
        title="Baku reveals the trick",
        description="The deck was marked",
        chapter_number=2,
        status=ModerationStatus.APPROVED.value,
    ))
    resp = await client.post(
        "/api/v1/chapter-spoilers",
        json={
            "eventId": event.id,
            "chapterId": chapters[1].id,
            "level": "outcome",
            "description": "Who wins the card game",
            "minimumChapter": chapters[1].id,
            "additionalRequirementIds": [chapters[2].id],
        },
        headers=auth_headers(user),
    )
    assert resp.status_code == 201, resp.text
    return resp.json(), chapters


async def test_check_viewable_against_read_chapters(client, add, user, auth_headers):
    spoiler, chapters = await _spoiler_fixture(client, add, user, auth_headers)
    assert spoiler["isVerified"] is False
    assert [c["number"] for c in spoiler["additionalRequirements"]] == [3]

    partial = await client.post(
        "/api/v1/chapter-spoilers/check-viewable",
        json={"spoilerId": spoiler["id"], "readChapterIds": [chapters[0].id, chapters[1].id]},
    )
    assert partial.status_code == 200
    assert partial.json() == {"canView": False}

    complete = await client.post(
        "/api/v1/chapter-spoilers/check-viewable",
        json={"spoilerId": spoiler["id"], "readChapterIds": [chapters[1].id, chapters[2].id]},
    )
    assert complete.json() == {"canView": True}


async def test_check_viewable_unknown_spoiler(client):
    resp = await client.post("/api/v1/chapter-spoilers/check-viewable", json={"spoilerId": 999})
    assert resp.status_code == 404


async def test_only_moderators_verify(client, add, user, moderator, auth_headers):
    spoiler, _ = await _spoiler_fixture(client, add, user, auth_headers)
    url = f"/api/v1/chapter-spoilers/{spoiler['id']}/verify"

    assert (await client.put(url, headers=auth_headers(user))).status_code == 403
    resp = await client.put(url, headers=auth_headers(moderator))
    assert resp.status_code == 200
    assert resp.json()["isVerified"] is True

    listed = await client.get("/api/v1/chapter-spoilers", params={"isVerified": "true"})
    assert listed.json()["total"] == 1

from fansite.db.models import Arc, Event, ModerationStatus

API = "/api/v1/events"

APPROVED = ModerationStatus.APPROVED.value


def approved_event(**kwargs) -> Event:
    kwargs.setdefault("description", "Something happens")
    return Event(status=APPROVED, **kwargs)


async def test_submission_needs_login(client):
    resp = await client.post(API, json={"title": "Lie", "description": "A lie is told"})
    assert resp.status_code == 401


async def test_submitted_event_stays_hidden_until_approved(client, user, moderator, auth_headers):
    resp = await client.post(
        API,
        json={"title": "Baku bets his eye", "description": "Stakes are raised", "chapterNumber": 3, "type": "gamble"},
        headers=auth_headers(user),
    )
    assert resp.status_code == 201, resp.text
    event = resp.json()
    assert event["status"] == "pending"
    assert event["createdById"] == user.id

    assert (await client.get(API)).json()["total"] == 0
    # Pending rows are invisible to the public but not to their author
    assert (await client.get(f"{API}/{event['id']}")).status_code == 404
    assert (await client.get(f"{API}/{event['id']}", headers=auth_headers(user))).status_code == 200

    assert (await client.put(f"{API}/{event['id']}/approve", headers=auth_headers(user))).status_code == 403
    resp = await client.put(f"{API}/{event['id']}/approve", headers=auth_headers(moderator))
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"

    listed = (await client.get(API)).json()
    assert listed["total"] == 1
    assert listed["data"][0]["title"] == "Baku bets his eye"


async def test_unknown_relations_are_rejected(client, user, auth_headers):
    resp = await client.post(
        API,
        json={"title": "Ghost", "description": "No such arc", "arcId": 404, "characterIds": [1]},
        headers=auth_headers(user),
    )
    assert resp.status_code == 400


async def test_user_progress_hides_later_spoilers(client, add):
    await add(
        approved_event(title="Early", chapter_number=5),
        approved_event(title="Late twist", chapter_number=40, spoiler_chapter=50),
        approved_event(title="Read", chapter_number=8, spoiler_chapter=10),
    )

    resp = await client.get(API, params={"userProgress": 10})
    assert [e["title"] for e in resp.json()["data"]] == ["Early", "Read"]

    resp = await client.get(API, params={"userProgress": 60, "sort": "chapterNumber", "order": "DESC"})
    assert [e["title"] for e in resp.json()["data"]] == ["Late twist", "Read", "Early"]


async def test_filters_by_title_and_type(client, add):
    await add(
        approved_event(title="Tower of Karma", chapter_number=100, type="gamble"),
        approved_event(title="Karma reveal", chapter_number=101, type="reveal"),
        approved_event(title="Unrelated", chapter_number=102, type="gamble"),
    )
    resp = await client.get(API, params={"title": "karma", "type": "gamble"})
    assert [e["title"] for e in resp.json()["data"]] == ["Tower of Karma"]


async def test_rejected_submission_can_be_edited_and_resubmitted(client, user, moderator, make_user, auth_headers):
    created = await client.post(
        API, json={"title": "Typo", "description": "Draft"}, headers=auth_headers(user)
    )
    event_id = created.json()["id"]

    resp = await client.put(
        f"{API}/{event_id}/reject", json={"reason": "Needs a chapter"}, headers=auth_headers(moderator)
    )
    assert resp.json()["status"] == "rejected"
    assert resp.json()["rejectionReason"] == "Needs a chapter"

    stranger = await make_user("stranger")
    resp = await client.patch(f"{API}/{event_id}/own", json={"chapterNumber": 9}, headers=auth_headers(stranger))
    assert resp.status_code == 403

    resp = await client.patch(f"{API}/{event_id}/own", json={"chapterNumber": 9}, headers=auth_headers(user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "pending"
    assert body["rejectionReason"] is None
    assert body["chapterNumber"] == 9


async def test_approved_submission_is_locked_for_author(client, add, user, auth_headers):
    event = await add(approved_event(title="Done", chapter_number=1, created_by_id=user.id))
    resp = await client.patch(f"{API}/{event.id}/own", json={"title": "Changed"}, headers=auth_headers(user))
    assert resp.status_code == 403


async def test_grouped_by_arc_follows_arc_order(client, add):
    second, first = await add(Arc(name="Tower", order=2), Arc(name="Proto Poker", order=1))
    await add(
        approved_event(title="In tower", chapter_number=200, arc_id=second.id),
        approved_event(title="In proto", chapter_number=2, arc_id=first.id),
        approved_event(title="Loose", chapter_number=3),
    )

    body = (await client.get(f"{API}/grouped/by-arc")).json()
    assert [g["arc"]["name"] for g in body["arcs"]] == ["Proto Poker", "Tower"]
    assert [e["title"] for e in body["arcs"][0]["events"]] == ["In proto"]
    assert [e["title"] for e in body["noArc"]] == ["Loose"]


async def test_visibility_uses_reader_progress(client, add, make_user, auth_headers):
    event = await add(approved_event(title="Death", chapter_number=20, spoiler_chapter=25))
    reader = await make_user("slowreader", progress=10)

    body = (await client.get(f"{API}/{event.id}/visibility", headers=auth_headers(reader))).json()
    assert body["hidden"] is True
    assert body["chapterNumber"] == 25
    assert body["label"] == "Chapter 25 spoiler - You're at Chapter 10. Click to reveal."

    caught_up = await make_user("fastreader", progress=30)
    body = (await client.get(f"{API}/{event.id}/visibility", headers=auth_headers(caught_up))).json()
    assert body["hidden"] is False
    assert body["label"] is None


async def test_timeline_and_visibility_agree_on_spoiler_chapter(client, add, make_user, auth_headers):
    arc = await add(Arc(name="Tower", order=1, start_chapter=1, end_chapter=60))
    event = await add(approved_event(title="Early hint", chapter_number=8, spoiler_chapter=50, arc_id=arc.id))
    reader = await make_user("midreader", progress=10)

    body = (await client.get(f"{API}/{event.id}/visibility", headers=auth_headers(reader))).json()
    assert body["hidden"] is True

    body = (await client.get(f"/api/v1/arcs/{arc.id}/timeline", headers=auth_headers(reader))).json()
    (item,) = body["sections"][0]["events"]
    assert item["isSpoiler"] is True
    assert item["spoilerLabel"].startswith("Chapter 50 spoiler")


async def test_update_rejects_null_for_required_fields(client, add, moderator, auth_headers):
    event = await add(approved_event(title="Kept", chapter_number=4, spoiler_chapter=9))

    resp = await client.put(
        f"{API}/{event.id}", json={"title": None, "chapterNumber": None}, headers=auth_headers(moderator)
    )
    assert resp.status_code == 422
    assert (await client.get(f"{API}/{event.id}")).json()["title"] == "Kept"

    # Optional columns can still be cleared
    resp = await client.put(f"{API}/{event.id}", json={"spoilerChapter": None}, headers=auth_headers(moderator))
    assert resp.status_code == 200
    assert resp.json()["spoilerChapter"] is None


async def test_only_admins_delete(client, add, moderator, admin, auth_headers):
    event = await add(approved_event(title="Gone", chapter_number=1))
    assert (await client.delete(f"{API}/{event.id}", headers=auth_headers(moderator))).status_code == 403
    assert (await client.delete(f"{API}/{event.id}", headers=auth_headers(admin))).status_code == 204
    assert (await client.get(f"{API}/{event.id}")).status_code == 404

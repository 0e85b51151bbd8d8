from fansite.db.models import (
    Arc, Chapter, Character, CharacterOrganization, Event, ModerationStatus, Organization, Volume,
)

API = "/api/v1"


async def test_series_crud_permissions_and_paging(client, user, moderator, auth_headers):
    assert (await client.post(f"{API}/series", json={"name": "Usogui"})).status_code == 401
    assert (await client.post(f"{API}/series", json={"name": "Usogui"}, headers=auth_headers(user))).status_code == 403

    for order, name in enumerate(["Usogui", "Usogui Gaiden", "Usogui Rebirth"]):
        resp = await client.post(
            f"{API}/series", json={"name": name, "order": order}, headers=auth_headers(moderator)
        )
        assert resp.status_code == 201

    body = (await client.get(f"{API}/series", params={"page": 2, "limit": 2})).json()
    assert body["total"] == 3
    assert body["page"] == 2
    assert body["perPage"] == 2
    assert body["totalPages"] == 2
    assert [s["name"] for s in body["data"]] == ["Usogui Rebirth"]


async def test_limit_is_capped(client):
    assert (await client.get(f"{API}/series", params={"limit": 1000})).status_code == 422
    assert (await client.get(f"{API}/series", params={"page": 0})).status_code == 422


async def test_arc_range_is_validated(client, moderator, auth_headers):
    resp = await client.post(
        f"{API}/arcs",
        json={"name": "Backwards", "startChapter": 50, "endChapter": 10},
        headers=auth_headers(moderator),
    )
    assert resp.status_code == 400


async def test_chapter_lookup_by_number_includes_volume(client, add):
    await add(Volume(number=1, start_chapter=1, end_chapter=9), Chapter(number=4, title="Lies"))
    resp = await client.get(f"{API}/chapters/number/4")
    assert resp.status_code == 200
    assert resp.json()["volume"]["number"] == 1
    assert (await client.get(f"{API}/chapters/number/400")).status_code == 404


async def test_arc_timeline_sections_and_spoiler_flags(client, add, make_user, auth_headers):
    arc = await add(Arc(name="Proto Poker", order=1, start_chapter=1, end_chapter=20))
    approved = ModerationStatus.APPROVED.value
    await add(
        Event(title="Old Maid", description="d", type="gamble", chapter_number=10, arc_id=arc.id, status=approved),
        Event(title="Bluff", description="d", type="decision", chapter_number=12, arc_id=arc.id, status=approved),
        Event(title="Win", description="d", type="resolution", chapter_number=15, arc_id=arc.id, status=approved),
        Event(title="Unreviewed", description="d", type="reveal", chapter_number=13, arc_id=arc.id),
    )

    body = (await client.get(f"{API}/arcs/{arc.id}/timeline")).json()
    assert body["totalEvents"] == 3
    assert [s["sectionName"] for s in body["sections"]] == ["Old Maid → Resolution"]
    events = body["sections"][0]["events"]
    assert [e["title"] for e in events] == ["Old Maid", "Bluff", "Win"]
    assert events[0]["typeLabel"] == "Gamble"
    # Anonymous readers have read nothing
    assert all(e["isSpoiler"] for e in events)

    reader = await make_user("caughtup", progress=12)
    body = (await client.get(f"{API}/arcs/{arc.id}/timeline", headers=auth_headers(reader))).json()
    flags = {e["title"]: e["isSpoiler"] for e in body["sections"][0]["events"]}
    assert flags == {"Old Maid": False, "Bluff": False, "Win": True}

    body = (await client.get(f"{API}/arcs/{arc.id}/timeline", params={"eventTypes": ["gamble"]})).json()
    assert body["totalEvents"] == 1


async def test_organization_members_respect_progress(client, add, make_user, moderator, auth_headers):
    baku, ikki = await add(Character(name="Baku Madarame"), Character(name="Ikki Hiroshi"))
    org = await add(Organization(name="Kakerou"))
    await add(
        CharacterOrganization(character_id=baku.id, organization_id=org.id, role="Member", start_chapter=11, spoiler_chapter=11),
        CharacterOrganization(character_id=ikki.id, organization_id=org.id, role="Leader", start_chapter=12, spoiler_chapter=300),
    )

    reader = await make_user("midway", progress=50)
    body = (await client.get(f"{API}/organizations/{org.id}", headers=auth_headers(reader))).json()
    assert [m["character"]["name"] for m in body["members"]] == ["Baku Madarame"]

    body = (await client.get(f"{API}/organizations/{org.id}", headers=auth_headers(moderator))).json()
    assert len(body["members"]) == 2


async def test_progress_is_bounded(client, user, auth_headers):
    url = f"{API}/users/profile/progress"
    assert (await client.put(url, json={"userProgress": 9999}, headers=auth_headers(user))).status_code == 400

    resp = await client.put(url, json={"userProgress": 42}, headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json() == {"userProgress": 42}
    assert (await client.get(url, headers=auth_headers(user))).json() == {"userProgress": 42}


async def test_search_across_content_types(client, add):
    await add(
        Character(name="Baku Madarame", description="A gambler"),
        Arc(name="Baku vs Marco", order=1, start_chapter=1),
        Character(name="Marco"),
    )

    body = (await client.get(f"{API}/search", params={"query": "baku"})).json()
    assert body["total"] == 2
    assert {r["type"] for r in body["data"]} == {"arc", "character"}

    body = (await client.get(f"{API}/search", params={"query": "baku", "type": "character"})).json()
    assert [r["title"] for r in body["data"]] == ["Baku Madarame"]

    assert (await client.get(f"{API}/search", params={"query": "baku", "type": "planet"})).status_code == 400

    types = (await client.get(f"{API}/search/content-types")).json()
    assert {"type": "guide", "label": "Guides"} in types


async def test_stats_counts(client, add):
    await add(Character(name="Kaji"), Arc(name="Labyrinth", order=3))
    body = (await client.get(f"{API}/stats")).json()
    assert body["characters"] == 1
    assert body["arcs"] == 1
    assert body["events"] == 0


async def test_admin_user_management(client, user, moderator, admin, auth_headers):
    assert (await client.get(f"{API}/users/stats", headers=auth_headers(moderator))).status_code == 403

    stats = (await client.get(f"{API}/users/stats", headers=auth_headers(admin))).json()
    assert stats["totalUsers"] == 3
    assert stats["moderators"] == 1
    assert stats["usersByRole"]["user"] == 1

    resp = await client.patch(f"{API}/users/{user.id}", json={"role": "moderator"}, headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["role"] == "moderator"

    resp = await client.patch(f"{API}/users/{user.id}", json={"username": "mod"}, headers=auth_headers(admin))
    assert resp.status_code == 409


async def test_own_submissions_include_pending(client, user, auth_headers):
    await client.post(
        f"{API}/events", json={"title": "Mine", "description": "Pending one"}, headers=auth_headers(user)
    )
    body = (await client.get(f"{API}/users/profile/submissions", headers=auth_headers(user))).json()
    assert [e["title"] for e in body["events"]] == ["Mine"]
    assert body["guides"] == []

    profile = (await client.get(f"{API}/users/public/{user.id}")).json()
    assert profile["submissions"]["events"] == 0


async def test_gambles_and_quotes_by_character(client, add, user, moderator, auth_headers):
    baku, marco = await add(Character(name="Baku Madarame"), Character(name="Marco"))

    resp = await client.post(
        f"{API}/gambles",
        json={"name": "Proto Poker", "chapterNumber": 2, "participantIds": [baku.id]},
        headers=auth_headers(moderator),
    )
    assert resp.status_code == 201
    assert [p["name"] for p in resp.json()["participants"]] == ["Baku Madarame"]

    bad = await client.post(
        f"{API}/gambles", json={"name": "Ghost", "participantIds": [999]}, headers=auth_headers(moderator)
    )
    assert bad.status_code == 400

    body = (await client.get(f"{API}/gambles", params={"characterId": marco.id})).json()
    assert body["total"] == 0
    gambles = (await client.get(f"{API}/characters/{baku.id}/gambles")).json()
    assert [g["name"] for g in gambles] == ["Proto Poker"]

    resp = await client.post(
        f"{API}/quotes",
        json={"text": "I call.", "chapterNumber": 3, "characterId": baku.id},
        headers=auth_headers(user),
    )
    assert resp.status_code == 201
    assert resp.json()["submittedById"] == user.id

    body = (await client.get(f"{API}/quotes", params={"search": "call"})).json()
    assert [q["character"]["name"] for q in body["data"]] == ["Baku Madarame"]
    assert (await client.delete(f"{API}/quotes/{resp.json()['id']}", headers=auth_headers(user))).status_code == 403

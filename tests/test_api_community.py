from datetime import timedelta

from fansite.db.models import Badge, Chapter, Character, UserBadge, utcnow

API = "/api/v1"


async def _submit_guide(client, author, auth_headers, **overrides):
    payload = {
        "title": "Reading the Tower of Karma",
        "description": "Breakdown of the water tank game",
        "content": "Long form analysis...",
        "tagNames": ["Strategy", "Tower"],
    }
    payload.update(overrides)
    resp = await client.post(f"{API}/guides", json=payload, headers=auth_headers(author))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_guide_moderation_flow(client, user, moderator, auth_headers):
    guide = await _submit_guide(client, user, auth_headers)
    assert guide["status"] == "pending"
    assert sorted(t["name"] for t in guide["tags"]) == ["Strategy", "Tower"]

    assert (await client.get(f"{API}/guides/public")).json()["total"] == 0
    assert (await client.get(f"{API}/guides/public/{guide['id']}")).status_code == 404
    mine = (await client.get(f"{API}/guides/my-guides", headers=auth_headers(user))).json()
    assert mine["total"] == 1

    pending = (await client.get(f"{API}/guides/pending", headers=auth_headers(moderator))).json()
    assert [g["id"] for g in pending["data"]] == [guide["id"]]

    resp = await client.post(f"{API}/guides/{guide['id']}/approve", headers=auth_headers(moderator))
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    # Only pending guides can be moderated
    assert (await client.post(f"{API}/guides/{guide['id']}/approve", headers=auth_headers(moderator))).status_code == 400

    public = (await client.get(f"{API}/guides/public", params={"tag": "strategy"})).json()
    assert public["total"] == 1

    viewed = (await client.get(f"{API}/guides/public/{guide['id']}")).json()
    assert viewed["viewCount"] == 1


async def test_guide_tags_are_shared(client, user, auth_headers):
    first = await _submit_guide(client, user, auth_headers, tagNames=["Strategy"])
    second = await _submit_guide(client, user, auth_headers, title="Another", tagNames=["strategy"])
    assert first["tags"][0]["id"] == second["tags"][0]["id"]


async def test_guide_likes_toggle(client, user, moderator, make_user, auth_headers):
    guide = await _submit_guide(client, user, auth_headers)
    fan = await make_user("fan")
    like_url = f"{API}/guides/{guide['id']}/like"

    # Pending guides cannot be liked
    assert (await client.post(like_url, headers=auth_headers(fan))).status_code == 400

    await client.post(f"{API}/guides/{guide['id']}/approve", headers=auth_headers(moderator))
    assert (await client.post(like_url, headers=auth_headers(fan))).json() == {"liked": True, "likeCount": 1}

    liked = (await client.get(f"{API}/guides/liked", headers=auth_headers(fan))).json()
    assert [g["id"] for g in liked["data"]] == [guide["id"]]

    assert (await client.post(like_url, headers=auth_headers(fan))).json() == {"liked": False, "likeCount": 0}


async def test_rejected_guide_returns_to_pending_on_edit(client, user, moderator, make_user, auth_headers):
    guide = await _submit_guide(client, user, auth_headers)
    url = f"{API}/guides/{guide['id']}"
    resp = await client.post(f"{url}/reject", json={"reason": "Too short"}, headers=auth_headers(moderator))
    assert resp.json()["rejectionReason"] == "Too short"

    other = await make_user("other")
    assert (await client.patch(url, json={"content": "Hijack"}, headers=auth_headers(other))).status_code == 403

    resp = await client.patch(url, json={"content": "Much longer analysis"}, headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending"
    assert resp.json()["rejectionReason"] is None


async def test_annotation_lifecycle(client, add, user, moderator, auth_headers):
    baku = await add(Character(name="Baku Madarame"))
    payload = {
        "ownerType": "character",
        "ownerId": baku.id,
        "title": "Eye colour",
        "content": "Changes in the colour edition",
        "chapterReference": 12,
    }
    resp = await client.post(f"{API}/annotations", json=payload, headers=auth_headers(user))
    assert resp.status_code == 201, resp.text
    annotation = resp.json()
    assert annotation["status"] == "pending"
    assert annotation["author"]["username"] == user.username

    listing_url = f"{API}/annotations/character/{baku.id}"
    assert (await client.get(listing_url)).json()["total"] == 0

    resp = await client.put(f"{API}/annotations/{annotation['id']}/approve", headers=auth_headers(moderator))
    assert resp.json()["status"] == "approved"
    assert (await client.get(listing_url)).json()["total"] == 1
    assert (await client.get(f"{API}/annotations/chapter/12")).json()["total"] == 1

    # Approved annotations are frozen for their author
    resp = await client.patch(f"{API}/annotations/{annotation['id']}", json={"title": "New"}, headers=auth_headers(user))
    assert resp.status_code == 403


async def test_chapter_annotations_include_chapter_owned_notes(client, add, user, moderator, auth_headers):
    chapter = await add(Chapter(number=7))
    resp = await client.post(
        f"{API}/annotations",
        json={"ownerType": "chapter", "ownerId": chapter.id, "title": "Translation", "content": "Pun explained"},
        headers=auth_headers(user),
    )
    await client.put(f"{API}/annotations/{resp.json()['id']}/approve", headers=auth_headers(moderator))

    body = (await client.get(f"{API}/annotations/chapter/7")).json()
    assert [a["title"] for a in body["data"]] == ["Translation"]


async def test_annotation_validation(client, add, user, auth_headers):
    baku = await add(Character(name="Baku Madarame"))
    base = {"ownerType": "character", "title": "t", "content": "c"}

    resp = await client.post(
        f"{API}/annotations", json={**base, "ownerId": baku.id, "isSpoiler": True}, headers=auth_headers(user)
    )
    assert resp.status_code == 400

    resp = await client.post(f"{API}/annotations", json={**base, "ownerId": 999}, headers=auth_headers(user))
    assert resp.status_code == 400

    resp = await client.post(
        f"{API}/annotations", json={**base, "ownerType": "volume", "ownerId": 1}, headers=auth_headers(user)
    )
    assert resp.status_code == 422


async def test_media_requires_http_url_and_moderation(client, add, user, moderator, auth_headers):
    baku = await add(Character(name="Baku Madarame"))
    base = {"type": "image", "ownerType": "character", "ownerId": baku.id}

    resp = await client.post(f"{API}/media", json={**base, "url": "ftp://example.test/a.png"}, headers=auth_headers(user))
    assert resp.status_code == 400

    resp = await client.post(f"{API}/media", json={**base, "url": "https://example.test/a.png"}, headers=auth_headers(user))
    assert resp.status_code == 201
    media_id = resp.json()["id"]

    params = {"ownerType": "character", "ownerId": baku.id}
    assert (await client.get(f"{API}/media", params=params)).json()["total"] == 0
    await client.put(f"{API}/media/{media_id}/approve", headers=auth_headers(moderator))
    assert (await client.get(f"{API}/media", params=params)).json()["total"] == 1


async def test_badge_award_and_revoke(client, add, user, admin, auth_headers):
    badge = await add(Badge(name="Supporter", type="supporter", icon="S", color="#f0c040"))
    award = {"userId": user.id, "badgeId": badge.id, "year": 2024, "reason": "Ko-fi"}

    assert (await client.post(f"{API}/badges/award", json=award, headers=auth_headers(user))).status_code == 403

    resp = await client.post(f"{API}/badges/award", json=award, headers=auth_headers(admin))
    assert resp.status_code == 201, resp.text
    assert resp.json()["year"] == 2024

    # Supporter badges repeat per year, never twice in the same one
    assert (await client.post(f"{API}/badges/award", json=award, headers=auth_headers(admin))).status_code == 400

    held = (await client.get(f"{API}/badges/user/{user.id}")).json()
    assert [b["badge"]["name"] for b in held] == ["Supporter"]

    profile = (await client.get(f"{API}/users/public/{user.id}")).json()
    assert len(profile["badges"]) == 1

    resp = await client.delete(
        f"{API}/badges/user/{user.id}/badge/{badge.id}", params={"reason": "Refund"}, headers=auth_headers(admin)
    )
    assert resp.status_code == 200
    assert (await client.get(f"{API}/badges/user/{user.id}")).json() == []


async def test_custom_badges_need_manual_flag(client, add, user, admin, auth_headers):
    badge = await add(Badge(name="Founder", type="custom", icon="F", color="#000"))
    resp = await client.post(
        f"{API}/badges/award", json={"userId": user.id, "badgeId": badge.id}, headers=auth_headers(admin)
    )
    assert resp.status_code == 400


async def test_expired_badges_are_deactivated(client, add, user, admin, auth_headers):
    badge = await add(Badge(name="Active Supporter", type="active_supporter", icon="A", color="#0f0"))
    await add(UserBadge(user_id=user.id, badge_id=badge.id, expires_at=utcnow() - timedelta(days=1)))

    resp = await client.post(f"{API}/badges/expire-badges", headers=auth_headers(admin))
    assert resp.json() == {"expiredCount": 1}
    assert (await client.get(f"{API}/badges/user/{user.id}")).json() == []

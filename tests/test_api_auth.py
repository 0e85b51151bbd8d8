import pytest

API = "/api/v1/auth"


async def _register(client, username="kaji", password="takaomi-123"):
    resp = await client.post(
        f"{API}/register",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_register_verify_login_flow(client):
    body = await _register(client)
    assert body["user"]["isEmailVerified"] is False
    token = body["verificationToken"]
    assert token

    # Unverified accounts cannot log in yet
    resp = await client.post(f"{API}/login", json={"username": "kaji", "password": "takaomi-123"})
    assert resp.status_code == 401

    resp = await client.get(f"{API}/verify-email", params={"token": token})
    assert resp.status_code == 200

    resp = await client.post(f"{API}/login", json={"username": "KAJI@example.com", "password": "takaomi-123"})
    assert resp.status_code == 200, resp.text
    tokens = resp.json()
    assert tokens["tokenType"] == "bearer"

    me = await client.get(f"{API}/me", headers={"Authorization": f"Bearer {tokens['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["username"] == "kaji"
    assert me.json()["isEmailVerified"] is True


async def test_verification_token_is_single_use(client):
    token = (await _register(client))["verificationToken"]
    assert (await client.get(f"{API}/verify-email", params={"token": token})).status_code == 200
    assert (await client.get(f"{API}/verify-email", params={"token": token})).status_code == 400


async def test_duplicate_username_or_email_conflicts(client):
    await _register(client, "marco")
    resp = await client.post(
        f"{API}/register",
        json={"username": "Marco", "email": "other@example.com", "password": "whatever-123"},
    )
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Username already taken"


@pytest.mark.parametrize("email", ["not-an-email", "a@b..c", "kaji@", "kaji@localhost"])
async def test_register_rejects_bad_email(client, email):
    resp = await client.post(
        f"{API}/register",
        json={"username": "nobody", "email": email, "password": "whatever-123"},
    )
    assert resp.status_code == 422


async def test_register_lowercases_email(client):
    resp = await client.post(
        f"{API}/register",
        json={"username": "Mixed", "email": "Mixed.Case@Example.com", "password": "whatever-123"},
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["email"] == "mixed.case@example.com"


async def test_wrong_password(client, user):
    resp = await client.post(f"{API}/login", json={"username": user.username, "password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials"


async def test_refresh_rotates_the_refresh_token(client, user, default_password):
    login = await client.post(f"{API}/login", json={"username": user.username, "password": default_password})
    first = login.json()["refreshToken"]

    resp = await client.post(f"{API}/refresh", json={"refreshToken": first})
    assert resp.status_code == 200
    second = resp.json()["refreshToken"]
    assert second != first

    assert (await client.post(f"{API}/refresh", json={"refreshToken": first})).status_code == 401


async def test_logout_invalidates_refresh_token(client, user, auth_headers, default_password):
    login = await client.post(f"{API}/login", json={"username": user.username, "password": default_password})
    refresh = login.json()["refreshToken"]

    assert (await client.post(f"{API}/logout", headers=auth_headers(user))).status_code == 200
    assert (await client.post(f"{API}/refresh", json={"refreshToken": refresh})).status_code == 401


async def test_password_reset(client, user, default_password):
    resp = await client.post(f"{API}/password-reset/request", json={"email": user.email})
    assert resp.status_code == 200
    reset_token = resp.json()["resetToken"]

    resp = await client.post(
        f"{API}/password-reset/confirm",
        json={"token": reset_token, "newPassword": "brand-new-password"},
    )
    assert resp.status_code == 200

    old = await client.post(f"{API}/login", json={"username": user.username, "password": default_password})
    assert old.status_code == 401
    new = await client.post(f"{API}/login", json={"username": user.username, "password": "brand-new-password"})
    assert new.status_code == 200

    # Tokens are single use
    again = await client.post(
        f"{API}/password-reset/confirm",
        json={"token": reset_token, "newPassword": "another-password"},
    )
    assert again.status_code == 400


async def test_password_reset_for_unknown_address_does_not_leak(client):
    resp = await client.post(f"{API}/password-reset/request", json={"email": "ghost@example.com"})
    assert resp.status_code == 200
    assert resp.json()["resetToken"] is None


async def test_me_requires_a_token(client):
    assert (await client.get(f"{API}/me")).status_code == 401
    resp = await client.get(f"{API}/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401

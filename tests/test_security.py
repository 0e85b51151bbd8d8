import pytest

from fansite.core.security import (
    TokenError,
    create_access_token,
    decode_access_token,
    generate_opaque_token,
    hash_password,
    verify_password,
)


def test_password_hash_is_salted_and_verifiable():
    first = hash_password("hunter2hunter2")
    second = hash_password("hunter2hunter2")
    assert first != second
    assert verify_password(first, "hunter2hunter2")
    assert not verify_password(first, "wrong-password")


def test_access_token_carries_user_and_role():
    payload = decode_access_token(create_access_token(42, "moderator"))
    assert payload == {"sub": 42, "role": "moderator"}


def test_tampered_token_is_rejected():
    token = create_access_token(1, "user")
    with pytest.raises(TokenError):
        decode_access_token(token[:-4] + "AAAA")
    with pytest.raises(TokenError):
        decode_access_token("not-a-token")


def test_opaque_tokens_are_unique_hex():
    a, b = generate_opaque_token(), generate_opaque_token()
    assert a != b
    assert len(a) == 64
    int(a, 16)

"""Password hashing and token helpers.

Access tokens are Fernet-encrypted JSON payloads ({sub, role}) checked against
a TTL on decode. Refresh, verification and reset tokens are opaque random hex
strings persisted on the user row.
"""

import base64
import hashlib
import json
import secrets

from cryptography.fernet import Fernet, InvalidToken
from werkzeug.security import check_password_hash, generate_password_hash

from fansite.config import get_settings


class TokenError(Exception):
    """Raised when an access token cannot be decoded or has expired."""


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def _derive_fernet_key(secret_value: str) -> bytes:
    digest = hashlib.sha256(secret_value.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


def _fernet() -> Fernet:
    return Fernet(_derive_fernet_key(get_settings().secret_key))


def create_access_token(user_id: int, role: str) -> str:
    payload = json.dumps({"sub": user_id, "role": role}, separators=(",", ":"))
    return _fernet().encrypt(payload.encode("utf-8")).decode("utf-8")


def decode_access_token(token: str) -> dict:
    """Return the token payload or raise TokenError."""
    try:
        raw = _fernet().decrypt(token.encode("utf-8"), ttl=get_settings().access_token_ttl_seconds)
    except InvalidToken as exc:
        raise TokenError("Invalid or expired token") from exc
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise TokenError("Malformed token payload") from exc
    if not isinstance(payload, dict) or "sub" not in payload:
        raise TokenError("Malformed token payload")
    return payload


def generate_opaque_token(nbytes: int = 32) -> str:
    """Random hex token for refresh, verification and password-reset flows."""
    return secrets.token_hex(nbytes)

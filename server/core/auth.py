from __future__ import annotations

import base64
import hmac
import json
import logging
import os
import time
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import uuid4

import asyncpg
from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import APIKeyHeader
from jose import jwk
from jose.constants import ALGORITHMS
from jose.exceptions import JWKError
from jose.utils import base64url_decode, base64url_encode
from passlib.crypto.digest import pbkdf2_hmac
from pydantic import ValidationError

if TYPE_CHECKING:
    from .schemas import TokenIdentity, User, UserCreate, UserInDB


logger = logging.getLogger(__name__)

# Password hashing
PBKDF2_DIGEST = "sha256"
PBKDF2_ITERATIONS = 100_000
PBKDF2_KEY_LENGTH = 32
SALT_BYTES = 16

# Token settings
ALGORITHM = ALGORITHMS.HS256
TOKEN_HEADER = {"alg": "HS256", "type": "JWT"}

# Raw Authorization header; get_current_user separates missing from invalid
security = APIKeyHeader(name="Authorization", auto_error=False)

# Database schema for users
USER_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    username TEXT NOT NULL,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    salt TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


def hash_password(password: str, salt: Optional[str] = None) -> Dict[str, str]:
    """Derive a PBKDF2-SHA256 hash for ``password``.

    When ``salt`` is omitted a fresh random one is generated. Both values are
    returned base64-encoded; a malformed ``salt`` raises ``binascii.Error``.
    """
    if salt is None:
        raw_salt = os.urandom(SALT_BYTES)
    else:
        raw_salt = base64.b64decode(salt, validate=True)

    derived = pbkdf2_hmac(PBKDF2_DIGEST, password.encode("utf-8"), raw_salt, PBKDF2_ITERATIONS, PBKDF2_KEY_LENGTH)
    return {
        "hash": base64.b64encode(derived).decode("ascii"),
        "salt": base64.b64encode(raw_salt).decode("ascii"),
    }


def verify_password(password: str, password_hash: str, salt: str) -> bool:
    try:
        candidate = hash_password(password, salt)["hash"]
    except ValueError:
        logger.warning("Stored salt could not be decoded")
        return False
    return hmac.compare_digest(candidate.encode("ascii"), password_hash.encode("ascii"))


def _encode_segment(data: Any) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def _signing_key(secret: str):
    return jwk.construct(secret, ALGORITHM)


def sign_token(payload: Dict[str, Any], secret: str) -> str:
    header = _encode_segment(TOKEN_HEADER)
    body = _encode_segment(payload)
    signature = _signing_key(secret).sign(f"{header}.{body}".encode("utf-8"))
    return f"{header}.{body}.{base64url_encode(signature).decode('ascii')}"


def verify_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """Return the payload of a correctly signed token, otherwise ``None``.

    Never raises: malformed segments, bad base64 and bad JSON all count as an
    invalid token. A past ``exp`` claim is rejected as well.
    """
    try:
        header, body, signature = token.split(".")
        raw_signature = base64url_decode(signature.encode("ascii"))
        if not _signing_key(secret).verify(f"{header}.{body}".encode("utf-8"), raw_signature):
            return None
        payload = json.loads(base64.b64decode(body, validate=True))
    except (AttributeError, TypeError, ValueError, JWKError):
        return None

    if not isinstance(payload, dict):
        return None
    expires_at = payload.get("exp")
    if isinstance(expires_at, (int, float)) and expires_at < time.time():
        return None
    return payload


def create_access_token(data: dict, secret: str, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        to_encode.update({"exp": int(time.time() + expires_delta.total_seconds())})
    return sign_token(to_encode, secret)


class UserRepository:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def initialise(self) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(USER_SCHEMA_SQL)

    async def create_user(self, user_create: "UserCreate") -> Optional["User"]:
        from .schemas import User

        derived = await run_in_threadpool(hash_password, user_create.password)
        user_id = str(uuid4())

        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO users (id, username, email, password_hash, salt)
                    VALUES ($1, $2, $3, $4, $5)
                    RETURNING id, username, email, created_at
                    """,
                    user_id,
                    user_create.username,
                    user_create.email,
                    derived["hash"],
                    derived["salt"],
                )
        except asyncpg.IntegrityConstraintViolationError:
            logger.info("Signup insert rejected by a constraint")
            return None
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError):
            logger.exception("Signup insert failed")
            return None
        if row is None:
            return None
        return User(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            created_at=row["created_at"],
        )

    async def get_user_by_email(self, email: str) -> Optional["UserInDB"]:
        from .schemas import UserInDB

        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, username, email, password_hash, salt, created_at
                FROM users WHERE email = $1
                """,
                email,
            )
        if row is None:
            return None
        return UserInDB(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            salt=row["salt"],
            created_at=row["created_at"],
        )


def get_current_user(
    authorization: Optional[str],
    secret: str,
) -> "TokenIdentity":
    """Resolve the identity behind an ``Authorization: Bearer <token>`` header.

    Only a missing header is 401; any header that does not carry a valid
    token (wrong scheme, no token part, bad signature) is 403.
    """
    from .schemas import TokenIdentity

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split(" ")
    token = parts[1] if len(parts) > 1 else ""
    payload = verify_token(token, secret)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid Token")

    try:
        return TokenIdentity.model_validate(payload)
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid Token")

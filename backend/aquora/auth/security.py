import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from hashlib import sha256
from typing import Any, Dict

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from aquora.auth.roles import UserRole
from aquora.core.config import Settings
from aquora.core.durations import parse_duration

JWT_ALG = "HS256"
ACCESS_TOKEN_TYPE = "access"
BCRYPT_MAX_BYTES = 72
REFRESH_TOKEN_BYTES = 64


class InvalidToken(Exception):
    pass


def _ensure_bcrypt_limit(password: str) -> None:
    # bcrypt limit is 72 BYTES, not characters
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError("Password too long (max 72 bytes).")


class PasswordHasher:
    """Salted bcrypt hashing with the work factor fixed at construction."""

    def __init__(self, cost: int) -> None:
        self.cost = cost
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=cost,
        )

    def hash(self, password: str) -> str:
        _ensure_bcrypt_limit(password)
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            _ensure_bcrypt_limit(password)
            return self._context.verify(password, password_hash)
        except ValueError:
            return False

    def dummy_verify(self) -> None:
        self._context.dummy_verify()


@dataclass(frozen=True)
class AccessClaims:
    sub: str
    mobile_number: str
    effective_role: UserRole
    society_id: str | None


class _AccessTokenPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    typ: StrictStr
    sub: StrictStr = Field(min_length=1)
    mobileNumber: StrictStr = Field(min_length=1)
    effectiveRole: UserRole
    societyId: StrictStr | None


class TokenCodec:
    """Signs and verifies access tokens (compact HS256 JWTs)."""

    def __init__(self, secret: str, ttl: str) -> None:
        if len(secret) < 32:
            raise ValueError("Access token secret must be at least 32 characters")
        self._secret = secret
        self.ttl_seconds = parse_duration(ttl)

    def sign(self, claims: AccessClaims, ttl_seconds: int | None = None) -> str:
        now = datetime.now(timezone.utc)
        lifetime = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        to_encode: Dict[str, Any] = {
            "typ": ACCESS_TOKEN_TYPE,
            "sub": claims.sub,
            "mobileNumber": claims.mobile_number,
            "effectiveRole": UserRole(claims.effective_role).value,
            "societyId": claims.society_id,
            "iat": now,
            "exp": now + timedelta(seconds=lifetime),
        }
        return jwt.encode(to_encode, self._secret, algorithm=JWT_ALG)

    def verify(self, token: str) -> AccessClaims:
        try:
            raw = jwt.decode(token, self._secret, algorithms=[JWT_ALG])
        except JWTError as exc:
            raise InvalidToken(str(exc)) from exc

        try:
            payload = _AccessTokenPayload.model_validate(raw)
        except ValidationError as exc:
            raise InvalidToken("Invalid token payload") from exc

        if payload.typ != ACCESS_TOKEN_TYPE:
            raise InvalidToken("Invalid token type")

        return AccessClaims(
            sub=payload.sub,
            mobile_number=payload.mobileNumber,
            effective_role=payload.effectiveRole,
            society_id=payload.societyId,
        )


def generate_refresh_token_value() -> str:
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def hash_token(token: str) -> str:
    return sha256(token.encode("utf-8")).hexdigest()


def build_password_hasher(settings: Settings) -> PasswordHasher:
    return PasswordHasher(settings.BCRYPT_COST)


def build_token_codec(settings: Settings) -> TokenCodec:
    return TokenCodec(settings.AUTH_ACCESS_TOKEN_SECRET, settings.AUTH_ACCESS_TOKEN_TTL)


__all__ = [
    "AccessClaims",
    "InvalidToken",
    "PasswordHasher",
    "TokenCodec",
    "build_password_hasher",
    "build_token_codec",
    "generate_refresh_token_value",
    "hash_token",
]

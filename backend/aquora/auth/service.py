import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aquora.auth import repository
from aquora.auth.context import EffectiveContext, resolve_effective_context
from aquora.auth.models import RefreshToken, User
from aquora.auth.schemas import AuthSuccess, LoginRequest, PublicUser, RegisterRequest
from aquora.auth.security import (
    AccessClaims,
    PasswordHasher,
    TokenCodec,
    generate_refresh_token_value,
    hash_token,
)
from aquora.core.clock import utcnow
from aquora.core.config import Settings
from aquora.core.errors import Conflict, NotFound, Unauthorized, ValidationFailed

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
EXPIRED_REFRESH_TOKEN = "Expired refresh token"


@dataclass(frozen=True)
class ClientInfo:
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class IssuedSession:
    auth: AuthSuccess
    refresh_token: str


def mask_mobile(mobile_number: str) -> str:
    if len(mobile_number) <= 4:
        return "****"
    return f"{mobile_number[:2]}*****{mobile_number[-2:]}"


def to_public_user(user: User) -> PublicUser:
    return PublicUser(
        id=user.id,
        mobile_number=user.mobile_number,
        full_name=user.full_name,
        role=user.role,
        preferred_language=user.preferred_language,
        is_active=user.is_active,
        society_id=user.society_id,
        created_at=user.created_at,
    )


class AuthService:
    """Register/login/refresh/logout/me over one request-scoped DB session.

    Every operation commits at most once; on any failure the session is
    rolled back so that a refresh token is never revoked without its
    successor being stored (or the other way round).
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        hasher: PasswordHasher,
        codec: TokenCodec,
    ) -> None:
        self.db = db
        self.settings = settings
        self.hasher = hasher
        self.codec = codec

    def register(self, payload: RegisterRequest, client: ClientInfo | None = None) -> IssuedSession:
        if repository.get_user_by_mobile(self.db, payload.mobile_number):
            raise Conflict("Mobile number already in use")

        try:
            password_hash = self.hasher.hash(payload.password)
        except ValueError as exc:
            raise ValidationFailed(str(exc)) from exc

        try:
            user = repository.create_user(
                self.db,
                mobile_number=payload.mobile_number,
                full_name=payload.full_name,
                password_hash=password_hash,
                role=payload.role.value,
                preferred_language=payload.preferred_language.value,
            )
            issued = self._issue_tokens_for_user(user, client)
            self.db.commit()
        except IntegrityError as exc:
            # lost a race against a concurrent registration of the same number
            self.db.rollback()
            raise Conflict("Mobile number already in use") from exc
        except Exception:
            self.db.rollback()
            raise

        logger.info("Registered user %s (%s)", user.id, mask_mobile(user.mobile_number))
        return issued

    def login(self, payload: LoginRequest, client: ClientInfo | None = None) -> IssuedSession:
        user = repository.get_user_by_mobile(self.db, payload.mobile_number)
        if user is None:
            self.hasher.dummy_verify()
            logger.info("Login failed for %s: unknown mobile number", mask_mobile(payload.mobile_number))
            raise Unauthorized(INVALID_CREDENTIALS)

        if not self.hasher.verify(payload.password, user.password_hash):
            logger.info("Login failed for %s: bad password", mask_mobile(payload.mobile_number))
            raise Unauthorized(INVALID_CREDENTIALS)

        try:
            issued = self._issue_tokens_for_user(user, client)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return issued

    def refresh(self, presented: str, client: ClientInfo | None = None) -> IssuedSession:
        stored = repository.find_refresh_token_by_hash(self.db, hash_token(presented))
        if stored is None:
            raise Unauthorized(INVALID_REFRESH_TOKEN)

        if stored.revoked_at is not None:
            if stored.replaced_by_token_id:
                self._handle_reuse(stored)
            raise Unauthorized(INVALID_REFRESH_TOKEN)

        now = utcnow()
        if not stored.is_live(now):
            # revoked tokens were handled above, so only expiry is left
            raise Unauthorized(EXPIRED_REFRESH_TOKEN)

        user = repository.get_user(self.db, stored.user_id)
        if user is None:
            raise Unauthorized(INVALID_REFRESH_TOKEN)

        try:
            value, successor = self._create_refresh_token(user, client)
            rotated = repository.revoke_refresh_token(
                self.db,
                stored.id,
                revoked_at=now,
                replaced_by_token_id=successor.id,
            )
            if not rotated:
                logger.warning(
                    "Refresh token %s was rotated concurrently; discarding successor %s",
                    stored.id,
                    successor.id,
                )
                self.db.rollback()
                raise Unauthorized(INVALID_REFRESH_TOKEN)
            auth = self._auth_success(user)
            self.db.commit()
        except Unauthorized:
            raise
        except Exception:
            self.db.rollback()
            raise

        return IssuedSession(auth=auth, refresh_token=value)

    def logout(self, presented: str | None) -> None:
        if not presented:
            return

        stored = repository.find_refresh_token_by_hash(self.db, hash_token(presented))
        if stored is None or stored.revoked_at is not None:
            return

        try:
            repository.revoke_refresh_token(
                self.db,
                stored.id,
                revoked_at=utcnow(),
                replaced_by_token_id=None,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def me(self, user_id: str) -> PublicUser:
        user = repository.get_user(self.db, user_id)
        if user is None:
            raise NotFound("User not found")
        return to_public_user(user)

    # --- internals ---

    def _issue_tokens_for_user(self, user: User, client: ClientInfo | None) -> IssuedSession:
        value, _ = self._create_refresh_token(user, client)
        return IssuedSession(auth=self._auth_success(user), refresh_token=value)

    def _create_refresh_token(self, user: User, client: ClientInfo | None) -> tuple[str, RefreshToken]:
        client = client or ClientInfo()
        value = generate_refresh_token_value()
        row = repository.create_refresh_token(
            self.db,
            user_id=user.id,
            token_hash=hash_token(value),
            expires_at=utcnow() + timedelta(days=self.settings.AUTH_REFRESH_TOKEN_TTL_DAYS),
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        return value, row

    def _auth_success(self, user: User) -> AuthSuccess:
        ctx: EffectiveContext = resolve_effective_context(self.db, user)
        access_token = self.codec.sign(
            AccessClaims(
                sub=user.id,
                mobile_number=user.mobile_number,
                effective_role=ctx.effective_role,
                society_id=ctx.effective_society_id,
            )
        )
        return AuthSuccess(
            user=to_public_user(user),
            access_token=access_token,
            effective_role=ctx.effective_role,
            effective_society_id=ctx.effective_society_id,
        )

    def _handle_reuse(self, stored: RefreshToken) -> None:
        try:
            revoked = repository.revoke_descendants(self.db, stored, revoked_at=utcnow())
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.warning(
            "Rotated refresh token %s presented again for user %s; revoked %d successor(s)",
            stored.id,
            stored.user_id,
            len(revoked),
        )

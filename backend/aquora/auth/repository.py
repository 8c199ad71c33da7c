import secrets
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from aquora.auth.models import RefreshToken, User
from aquora.societies.models import SocietyRoleAssignment


# --- Users ---


def get_user(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def get_user_by_mobile(db: Session, mobile_number: str) -> User | None:
    return db.execute(
        select(User).where(User.mobile_number == mobile_number)
    ).scalar_one_or_none()


def create_user(
    db: Session,
    *,
    mobile_number: str,
    full_name: str,
    password_hash: str,
    role: str,
    preferred_language: str,
    created_by: str | None = None,
) -> User:
    user = User(
        id=f"u_{secrets.token_hex(10)}",
        mobile_number=mobile_number,
        full_name=full_name,
        password_hash=password_hash,
        role=role,
        preferred_language=preferred_language,
        is_active=True,
        society_id=None,
        created_by=created_by,
    )
    db.add(user)
    db.flush()
    return user


def list_active_assignments_for_user(db: Session, user_id: str) -> list[SocietyRoleAssignment]:
    return list(
        db.execute(
            select(SocietyRoleAssignment)
            .where(
                SocietyRoleAssignment.user_id == user_id,
                SocietyRoleAssignment.is_active.is_(True),
            )
            .order_by(SocietyRoleAssignment.assigned_at.desc())
        ).scalars().all()
    )


# --- Refresh tokens ---


def create_refresh_token(
    db: Session,
    *,
    user_id: str,
    token_hash: str,
    expires_at: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> RefreshToken:
    row = RefreshToken(
        id=f"rt_{secrets.token_hex(10)}",
        user_id=user_id,
        token_hash=token_hash,
        expires_at=expires_at,
        ip_address=ip_address,
        user_agent=(user_agent[:512] if user_agent else None),
        revoked_at=None,
        replaced_by_token_id=None,
    )
    db.add(row)
    db.flush()
    return row


def find_refresh_token_by_hash(db: Session, token_hash: str) -> RefreshToken | None:
    return db.execute(
        select(RefreshToken).where(RefreshToken.token_hash == token_hash)
    ).scalar_one_or_none()


def revoke_refresh_token(
    db: Session,
    token_id: str,
    *,
    revoked_at: datetime,
    replaced_by_token_id: str | None,
) -> bool:
    """Revoke a live token. Returns False if someone else revoked it first."""
    result = db.execute(
        update(RefreshToken)
        .where(RefreshToken.id == token_id, RefreshToken.revoked_at.is_(None))
        .values(revoked_at=revoked_at, replaced_by_token_id=replaced_by_token_id)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1


def revoke_descendants(db: Session, token: RefreshToken, *, revoked_at: datetime) -> list[str]:
    """Walk the rotation chain after ``token`` and revoke every successor still live."""
    revoked: list[str] = []
    seen = {token.id}
    next_id = token.replaced_by_token_id
    while next_id and next_id not in seen:
        seen.add(next_id)
        successor = db.get(RefreshToken, next_id)
        if successor is None:
            break
        if successor.revoked_at is None:
            if revoke_refresh_token(db, successor.id, revoked_at=revoked_at, replaced_by_token_id=None):
                revoked.append(successor.id)
        next_id = successor.replaced_by_token_id
    return revoked

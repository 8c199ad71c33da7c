import secrets
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from aquora.auth.models import User
from aquora.auth.roles import OfficerRole
from aquora.core.clock import utcnow
from aquora.societies.models import Society, SocietyRoleAssignment

OFFICER_ROLES = [r.value for r in OfficerRole]


def create_society(db: Session, **fields) -> Society:
    society = Society(id=f"soc_{secrets.token_hex(10)}", is_active=True, **fields)
    db.add(society)
    db.flush()
    return society


def list_societies(db: Session) -> list[Society]:
    return list(db.execute(select(Society).order_by(Society.created_at.desc())).scalars().all())


def get_society(db: Session, society_id: str, *, for_update: bool = False) -> Society | None:
    stmt = select(Society).where(Society.id == society_id)
    if for_update:
        # serializes officer changes per society; ignored by SQLite
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def get_user(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def list_officer_assignments(
    db: Session, society_id: str, *, include_inactive: bool = False
) -> list[tuple[SocietyRoleAssignment, User]]:
    stmt = (
        select(SocietyRoleAssignment, User)
        .join(User, User.id == SocietyRoleAssignment.user_id)
        .where(
            SocietyRoleAssignment.society_id == society_id,
            SocietyRoleAssignment.role.in_(OFFICER_ROLES),
        )
    )
    if not include_inactive:
        stmt = stmt.where(SocietyRoleAssignment.is_active.is_(True))
    rows = db.execute(
        stmt.order_by(SocietyRoleAssignment.assigned_at.desc(), SocietyRoleAssignment.id.desc())
    ).all()
    return [(assignment, user) for assignment, user in rows]


def deactivate_active_assignments(
    db: Session, *, society_id: str, role: str, at: datetime | None = None
) -> int:
    result = db.execute(
        update(SocietyRoleAssignment)
        .where(
            SocietyRoleAssignment.society_id == society_id,
            SocietyRoleAssignment.role == role,
            SocietyRoleAssignment.is_active.is_(True),
        )
        .values(is_active=False, unassigned_at=at or utcnow())
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount


def deactivate_user_assignments(db: Session, *, user_id: str, at: datetime | None = None) -> int:
    result = db.execute(
        update(SocietyRoleAssignment)
        .where(
            SocietyRoleAssignment.user_id == user_id,
            SocietyRoleAssignment.is_active.is_(True),
        )
        .values(is_active=False, unassigned_at=at or utcnow())
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount


def create_assignment(
    db: Session, *, society_id: str, user_id: str, role: str, assigned_at: datetime | None = None
) -> SocietyRoleAssignment:
    assignment = SocietyRoleAssignment(
        id=f"sra_{secrets.token_hex(10)}",
        society_id=society_id,
        user_id=user_id,
        role=role,
        is_active=True,
        assigned_at=assigned_at or utcnow(),
        unassigned_at=None,
    )
    db.add(assignment)
    db.flush()
    return assignment


def get_assignment(db: Session, assignment_id: str) -> SocietyRoleAssignment | None:
    return db.get(SocietyRoleAssignment, assignment_id)


def list_society_users(db: Session, society_id: str, role: str | None = None) -> list[User]:
    stmt = select(User).where(User.society_id == society_id)
    if role:
        stmt = stmt.where(User.role == role)
    return list(db.execute(stmt.order_by(User.full_name.asc())).scalars().all())

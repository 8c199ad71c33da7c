import logging

from sqlalchemy.orm import Session

from aquora.auth.models import User
from aquora.core.clock import utcnow
from aquora.core.errors import NotFound, ValidationFailed
from aquora.societies import repository
from aquora.societies.models import Society, SocietyRoleAssignment
from aquora.societies.schemas import (
    OfficerAssignmentSummary,
    OfficerAssignRequest,
    OfficerAssignResponse,
    OfficerUserSummary,
    SocietyCreate,
    SocietyDetail,
    SocietySummary,
    SocietyUpdate,
    SocietyUserSummary,
)

logger = logging.getLogger(__name__)


def _to_society_summary(society: Society) -> SocietySummary:
    return SocietySummary(
        id=society.id,
        name=society.name,
        address=society.address,
        water_board_reg_no=society.water_board_reg_no,
        is_active=society.is_active,
        billing_day_of_month=society.billing_day_of_month,
        due_days=society.due_days,
    )


def _to_officer_summary(assignment: SocietyRoleAssignment, user: User) -> OfficerAssignmentSummary:
    return OfficerAssignmentSummary(
        id=assignment.id,
        role=assignment.role,
        is_active=assignment.is_active,
        assigned_at=assignment.assigned_at,
        unassigned_at=assignment.unassigned_at,
        user=OfficerUserSummary(
            id=user.id,
            full_name=user.full_name,
            mobile_number=user.mobile_number,
            role=user.role,
            is_active=user.is_active,
        ),
    )


def _require_society(db: Session, society_id: str, *, for_update: bool = False) -> Society:
    society = repository.get_society(db, society_id, for_update=for_update)
    if not society:
        raise NotFound("Society not found")
    return society


def create_society(db: Session, payload: SocietyCreate, *, actor_id: str) -> SocietySummary:
    try:
        society = repository.create_society(
            db,
            name=payload.name,
            address=payload.address,
            water_board_reg_no=payload.water_board_reg_no,
            billing_scheme_json=payload.billing_scheme_json,
            billing_day_of_month=payload.billing_day_of_month,
            due_days=payload.due_days,
            created_by=actor_id,
            updated_by=actor_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Society %s created by %s", society.id, actor_id)
    return _to_society_summary(society)


def list_societies(db: Session) -> list[SocietySummary]:
    return [_to_society_summary(s) for s in repository.list_societies(db)]


def get_officers(
    db: Session, society_id: str, *, include_inactive: bool = False
) -> list[OfficerAssignmentSummary]:
    return [
        _to_officer_summary(assignment, user)
        for assignment, user in repository.list_officer_assignments(
            db, society_id, include_inactive=include_inactive
        )
    ]


def list_officers(
    db: Session, society_id: str, *, include_inactive: bool = False
) -> list[OfficerAssignmentSummary]:
    _require_society(db, society_id)
    return get_officers(db, society_id, include_inactive=include_inactive)


def get_society_detail(db: Session, society_id: str) -> SocietyDetail:
    society = _require_society(db, society_id)
    summary = _to_society_summary(society)
    return SocietyDetail(
        **summary.model_dump(),
        billing_scheme_json=society.billing_scheme_json,
        created_at=society.created_at,
        updated_at=society.updated_at,
        officers=get_officers(db, society_id),
    )


def update_society(
    db: Session, society_id: str, payload: SocietyUpdate, *, actor_id: str
) -> SocietySummary:
    society = _require_society(db, society_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(society, field, value)
    society.updated_by = actor_id

    try:
        db.add(society)
        db.commit()
        db.refresh(society)
    except Exception:
        db.rollback()
        raise

    return _to_society_summary(society)


def assign_officer(
    db: Session, society_id: str, payload: OfficerAssignRequest, *, actor_id: str
) -> OfficerAssignResponse:
    """Elect a user into a society office.

    Runs as one transaction: any current holder of the office (and any
    other office the user holds) is deactivated before the new assignment
    is written, so at most one active assignment exists per (society, role).
    """
    try:
        society = _require_society(db, society_id, for_update=True)
        if not society.is_active:
            raise ValidationFailed("Society is inactive")

        user = repository.get_user(db, payload.user_id)
        if not user:
            raise NotFound("User not found")

        if user.society_id and user.society_id != society_id:
            raise ValidationFailed("User belongs to a different society")

        if not user.society_id:
            user.society_id = society_id
            user.updated_by = actor_id
            db.add(user)

        now = utcnow()
        replaced = repository.deactivate_active_assignments(
            db, society_id=society_id, role=payload.role.value, at=now
        )
        if replaced > 1:
            logger.warning(
                "Integrity fault: society %s had %d active %s assignments",
                society_id,
                replaced,
                payload.role.value,
            )
        repository.deactivate_user_assignments(db, user_id=user.id, at=now)

        created = repository.create_assignment(
            db, society_id=society_id, user_id=user.id, role=payload.role.value, assigned_at=now
        )
        assignment = _to_officer_summary(created, user)
        officers = get_officers(db, society_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "User %s assigned %s of society %s by %s (replaced %d)",
        payload.user_id,
        payload.role.value,
        society_id,
        actor_id,
        replaced,
    )
    return OfficerAssignResponse(assignment=assignment, officers=officers)


def deactivate_officer(db: Session, society_id: str, assignment_id: str) -> list[OfficerAssignmentSummary]:
    try:
        assignment = repository.get_assignment(db, assignment_id)
        if not assignment or assignment.society_id != society_id:
            raise NotFound("Assignment not found")

        if assignment.is_active:
            assignment.is_active = False
            assignment.unassigned_at = utcnow()
            db.add(assignment)
            logger.info("Assignment %s in society %s deactivated", assignment_id, society_id)

        db.flush()
        officers = get_officers(db, society_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return officers


def list_society_users(db: Session, society_id: str, role: str | None = None) -> list[SocietyUserSummary]:
    _require_society(db, society_id)
    return [
        SocietyUserSummary(
            id=u.id,
            full_name=u.full_name,
            mobile_number=u.mobile_number,
            role=u.role,
            is_active=u.is_active,
        )
        for u in repository.list_society_users(db, society_id, role)
    ]

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from aquora.auth.deps import get_current_auth, require_super_admin
from aquora.auth.guard import ensure_society_access
from aquora.auth.roles import UserRole
from aquora.auth.security import AccessClaims
from aquora.core.schemas import Envelope
from aquora.db.session import get_db
from aquora.societies import service
from aquora.societies.schemas import (
    OfficerAssignRequest,
    OfficerAssignResponse,
    OfficersResponse,
    SocietyCreate,
    SocietyDetail,
    SocietySummary,
    SocietyUpdate,
    SocietyUserSummary,
)

router = APIRouter()


def _guard(auth: AccessClaims, society_id: str) -> None:
    ensure_society_access(auth.effective_role, auth.society_id, society_id)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[SocietySummary],
)
def create_society(
    payload: SocietyCreate,
    db: Session = Depends(get_db),
    auth: AccessClaims = Depends(require_super_admin),
):
    return Envelope(data=service.create_society(db, payload, actor_id=auth.sub))


@router.get("", response_model=Envelope[list[SocietySummary]])
def list_societies(
    db: Session = Depends(get_db),
    auth: AccessClaims = Depends(require_super_admin),
):
    return Envelope(data=service.list_societies(db))


@router.get("/{society_id}", response_model=Envelope[SocietyDetail])
def get_society(
    society_id: str,
    db: Session = Depends(get_db),
    auth: AccessClaims = Depends(get_current_auth),
):
    _guard(auth, society_id)
    return Envelope(data=service.get_society_detail(db, society_id))


@router.patch("/{society_id}", response_model=Envelope[SocietySummary])
def update_society(
    society_id: str,
    payload: SocietyUpdate,
    db: Session = Depends(get_db),
    auth: AccessClaims = Depends(require_super_admin),
):
    _guard(auth, society_id)
    return Envelope(data=service.update_society(db, society_id, payload, actor_id=auth.sub))


@router.get("/{society_id}/officers", response_model=Envelope[OfficersResponse])
def get_officers(
    society_id: str,
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    db: Session = Depends(get_db),
    auth: AccessClaims = Depends(get_current_auth),
):
    _guard(auth, society_id)
    officers = service.list_officers(db, society_id, include_inactive=include_inactive)
    return Envelope(data=OfficersResponse(officers=officers))


@router.post(
    "/{society_id}/officers/assign",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[OfficerAssignResponse],
)
def assign_officer(
    society_id: str,
    payload: OfficerAssignRequest,
    db: Session = Depends(get_db),
    auth: AccessClaims = Depends(require_super_admin),
):
    _guard(auth, society_id)
    return Envelope(data=service.assign_officer(db, society_id, payload, actor_id=auth.sub))


@router.patch(
    "/{society_id}/officers/{assignment_id}/deactivate",
    response_model=Envelope[OfficersResponse],
)
def deactivate_officer(
    society_id: str,
    assignment_id: str,
    db: Session = Depends(get_db),
    auth: AccessClaims = Depends(require_super_admin),
):
    _guard(auth, society_id)
    officers = service.deactivate_officer(db, society_id, assignment_id)
    return Envelope(data=OfficersResponse(officers=officers))


@router.get("/{society_id}/users", response_model=Envelope[list[SocietyUserSummary]])
def list_society_users(
    society_id: str,
    role: UserRole | None = Query(default=None),
    db: Session = Depends(get_db),
    auth: AccessClaims = Depends(require_super_admin),
):
    _guard(auth, society_id)
    users = service.list_society_users(db, society_id, role.value if role else None)
    return Envelope(data=users)

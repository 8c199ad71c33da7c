from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from aquora.core.clock import utcnow
from aquora.db.base import Base


class Society(Base):
    __tablename__ = "societies"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)                      # e.g. soc_81c2...
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    water_board_reg_no: Mapped[str] = mapped_column(String(64), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # billing internals live elsewhere; stored as-is
    billing_scheme_json: Mapped[Any] = mapped_column(JSON, nullable=True)
    billing_day_of_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    due_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    updated_by: Mapped[str | None] = mapped_column(String(64), nullable=True)


class SocietyRoleAssignment(Base):
    __tablename__ = "society_role_assignments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)                      # e.g. sra_0d7e...
    society_id: Mapped[str] = mapped_column(String(64), ForeignKey("societies.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False)                      # OfficerRole value
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    assigned_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    unassigned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


Index(
    "ix_society_role_assignments_society_role_active",
    SocietyRoleAssignment.society_id,
    SocietyRoleAssignment.role,
    SocietyRoleAssignment.is_active,
)
Index(
    "ix_society_role_assignments_user_active_assigned_at",
    SocietyRoleAssignment.user_id,
    SocietyRoleAssignment.is_active,
    SocietyRoleAssignment.assigned_at,
)

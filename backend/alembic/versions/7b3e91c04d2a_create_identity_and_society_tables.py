"""create identity and society tables

Revision ID: 7b3e91c04d2a
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7b3e91c04d2a"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "societies",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=512), nullable=True),
        sa.Column("water_board_reg_no", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("billing_scheme_json", sa.JSON(), nullable=True),
        sa.Column("billing_day_of_month", sa.Integer(), nullable=True),
        sa.Column("due_days", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("updated_by", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("mobile_number", sa.String(length=20), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("preferred_language", sa.String(length=8), nullable=False, server_default="EN"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("society_id", sa.String(length=64), sa.ForeignKey("societies.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("updated_by", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_mobile_number"), "users", ["mobile_number"], unique=True)
    op.create_index(op.f("ix_users_society_id"), "users", ["society_id"], unique=False)

    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token_hash", sa.String(length=128), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column(
            "replaced_by_token_id",
            sa.String(length=64),
            sa.ForeignKey("refresh_tokens.id"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_refresh_tokens_user_id"), "refresh_tokens", ["user_id"], unique=False)
    op.create_index(op.f("ix_refresh_tokens_token_hash"), "refresh_tokens", ["token_hash"], unique=True)

    op.create_table(
        "society_role_assignments",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("society_id", sa.String(length=64), sa.ForeignKey("societies.id"), nullable=False),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("assigned_at", sa.DateTime(), nullable=False),
        sa.Column("unassigned_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_society_role_assignments_society_id"), "society_role_assignments", ["society_id"], unique=False
    )
    op.create_index(
        op.f("ix_society_role_assignments_user_id"), "society_role_assignments", ["user_id"], unique=False
    )
    op.create_index(
        "ix_society_role_assignments_society_role_active",
        "society_role_assignments",
        ["society_id", "role", "is_active"],
        unique=False,
    )
    op.create_index(
        "ix_society_role_assignments_user_active_assigned_at",
        "society_role_assignments",
        ["user_id", "is_active", "assigned_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_society_role_assignments_user_active_assigned_at", table_name="society_role_assignments")
    op.drop_index("ix_society_role_assignments_society_role_active", table_name="society_role_assignments")
    op.drop_index(op.f("ix_society_role_assignments_user_id"), table_name="society_role_assignments")
    op.drop_index(op.f("ix_society_role_assignments_society_id"), table_name="society_role_assignments")
    op.drop_table("society_role_assignments")

    op.drop_index(op.f("ix_refresh_tokens_token_hash"), table_name="refresh_tokens")
    op.drop_index(op.f("ix_refresh_tokens_user_id"), table_name="refresh_tokens")
    op.drop_table("refresh_tokens")

    op.drop_index(op.f("ix_users_society_id"), table_name="users")
    op.drop_index(op.f("ix_users_mobile_number"), table_name="users")
    op.drop_table("users")

    op.drop_table("societies")

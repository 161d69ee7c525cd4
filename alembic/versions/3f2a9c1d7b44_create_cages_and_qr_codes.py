"""create cages and qr_codes

Revision ID: 3f2a9c1d7b44
Revises: 
Create Date: 2026-10-19 09:12:04.118204

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b44'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "cages",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("cage_number", sa.String(64), nullable=False),
        sa.Column(
            "room_number",
            sa.Enum("BB00028", "ZRC_C61", "ZRC_SC14", name="roomnumber"),
            nullable=False,
        ),
        sa.Column("location", sa.String(255), nullable=False, server_default=""),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="5"),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "BREEDING", "HOLDING", name="cagestatus"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("tenant_id", "cage_number"),
    )
    op.create_index("ix_cages_tenant_id", "cages", ["tenant_id"])
    op.create_index("ix_cages_cage_number", "cages", ["cage_number"])

    op.create_table(
        "qr_codes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column("is_blank", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("bound_resource_id", sa.Uuid(), sa.ForeignKey("cages.id"), nullable=True),
        sa.Column("generated_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("claimed_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("claimed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        # A code is blank exactly while it has no bound cage
        sa.CheckConstraint(
            "(is_blank AND bound_resource_id IS NULL) "
            "OR (NOT is_blank AND bound_resource_id IS NOT NULL)",
            name="ck_qr_codes_blank_binding",
        ),
    )
    op.create_index("ix_qr_codes_tenant_id", "qr_codes", ["tenant_id"])
    op.create_index("ix_qr_codes_payload", "qr_codes", ["payload"])
    op.create_index("ix_qr_codes_is_blank", "qr_codes", ["is_blank"])
    op.create_index("ix_qr_codes_bound_resource_id", "qr_codes", ["bound_resource_id"])


def downgrade() -> None:
    op.drop_table("qr_codes")
    op.drop_table("cages")
    sa.Enum(name="cagestatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="roomnumber").drop(op.get_bind(), checkfirst=True)

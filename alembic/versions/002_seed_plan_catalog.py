"""Seed the plan catalog."""
from __future__ import annotations

import uuid

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from vetsaas.services.plan_catalog import PLAN_CATALOG


# revision identifiers, used by Alembic.
revision = "002_seed_plan_catalog"
down_revision = "001_initial_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    plan_table = sa.table(
        "plans",
        sa.column("id", postgresql.UUID(as_uuid=True)),
        sa.column("key", sa.String()),
        sa.column("name", sa.String()),
        sa.column("description", sa.Text()),
        sa.column("tier", sa.Integer()),
        sa.column("monthly_price", sa.Numeric(10, 2)),
        sa.column("annual_price", sa.Numeric(10, 2)),
        sa.column("max_pets", sa.Integer()),
        sa.column("max_users", sa.Integer()),
        sa.column("max_storage_gb", sa.Integer()),
        sa.column("max_cash_registers", sa.Integer()),
        sa.column("max_monthly_whatsapp", sa.Integer()),
        sa.column("features", postgresql.JSONB()),
        sa.column("is_recommended", sa.Boolean()),
        sa.column("is_active", sa.Boolean()),
    )

    op.bulk_insert(
        plan_table,
        [
            {
                "id": uuid.uuid4(),
                "key": key,
                **{
                    field: dict(value) if field == "features" else value
                    for field, value in definition.items()
                },
                "is_active": True,
            }
            for key, definition in PLAN_CATALOG.items()
        ],
    )


def downgrade() -> None:
    op.execute(
        sa.text("DELETE FROM plans WHERE key IN :keys").bindparams(
            sa.bindparam("keys", value=tuple(PLAN_CATALOG), expanding=True)
        )
    )

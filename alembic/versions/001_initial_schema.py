"""Create tenant, subscription, plan and companion tables."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

SUBSCRIPTION_STATUSES = ("TRIALING", "ACTIVE", "PAST_DUE", "UNPAID", "CANCELLED", "INCOMPLETE")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    subscription_status = postgresql.ENUM(
        *SUBSCRIPTION_STATUSES, name="subscription_status_enum"
    )
    subscription_status.create(op.get_bind(), checkfirst=True)
    subscription_status_col = postgresql.ENUM(
        *SUBSCRIPTION_STATUSES, name="subscription_status_enum", create_type=False
    )

    op.create_table(
        "plans",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("key", sa.String(32), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tier", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("monthly_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("annual_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_pets", sa.Integer(), nullable=False, server_default=sa.text("50")),
        sa.Column("max_users", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("max_storage_gb", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column(
            "max_cash_registers", sa.Integer(), nullable=False, server_default=sa.text("1")
        ),
        sa.Column(
            "max_monthly_whatsapp", sa.Integer(), nullable=False, server_default=sa.text("50")
        ),
        sa.Column(
            "features",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("is_recommended", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )
    op.create_index("ix_plans_key", "plans", ["key"], unique=True)

    op.create_table(
        "tenants",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(63), nullable=False),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "SUSPENDED", "DISABLED", name="tenant_status_enum"),
            nullable=False,
            server_default="ACTIVE",
        ),
        sa.Column(
            "subscription_status",
            subscription_status_col,
            nullable=False,
            server_default="TRIALING",
        ),
        sa.Column("is_trial_period", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("stripe_customer_id", sa.String(), nullable=True, unique=True),
        sa.Column("stripe_subscription_id", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tenants.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_users_tenant_id", "users", ["tenant_id"])

    op.create_table(
        "tenant_subscriptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "plan_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("plans.id"),
            nullable=False,
        ),
        sa.Column("status", subscription_status_col, nullable=False, server_default="TRIALING"),
        sa.Column(
            "billing_interval",
            sa.Enum("monthly", "annual", name="billing_interval_enum"),
            nullable=False,
            server_default="monthly",
        ),
        sa.Column("current_period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "cancel_at_period_end", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("stripe_subscription_id", sa.String(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "tenant_settings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("timezone", sa.String(), nullable=False, server_default="America/Mexico_City"),
        sa.Column("date_format", sa.String(), nullable=False, server_default="DD/MM/YYYY"),
        sa.Column("currency_code", sa.String(3), nullable=False, server_default="MXN"),
        sa.Column("currency_symbol", sa.String(4), nullable=False, server_default="$"),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=False, server_default=sa.text("0.16")),
        sa.Column(
            "appointment_duration", sa.Integer(), nullable=False, server_default=sa.text("30")
        ),
        sa.Column(
            "enable_email_reminders", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column(
            "enable_sms_reminders", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
    )

    op.create_table(
        "tenant_usage_stats",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("total_users", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_pets", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_appointments", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_sales", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "storage_used_bytes", sa.BigInteger(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "monthly_whatsapp_sent", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("cash_registers", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "last_updated",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "roles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("key", sa.String(50), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("tenant_id", "key", name="uq_role_tenant_key"),
    )
    op.create_index("ix_roles_tenant_id", "roles", ["tenant_id"])

    op.create_table(
        "user_roles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.String(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "role_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("roles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_role"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    op.create_table(
        "subscription_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("event", sa.String(50), nullable=False),
        sa.Column(
            "details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_subscription_events_tenant_id", "subscription_events", ["tenant_id"])


def downgrade() -> None:
    op.drop_table("subscription_events")
    op.drop_table("user_roles")
    op.drop_table("roles")
    op.drop_table("tenant_usage_stats")
    op.drop_table("tenant_settings")
    op.drop_table("tenant_subscriptions")
    op.drop_table("users")
    op.drop_table("tenants")
    op.drop_table("plans")
    sa.Enum(name="billing_interval_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="tenant_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="subscription_status_enum").drop(op.get_bind(), checkfirst=True)

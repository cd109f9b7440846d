"""create subscriptions, webhook channels, settings, exchange rates and logs tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "a1c2e3f4b5d6"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="Asia/Shanghai"),
        sa.Column("base_currency", sa.String(length=3), nullable=False, server_default="CNY"),
        sa.Column("exchange_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("exchange_api_key", sa.String(length=255), nullable=True),
        sa.Column("last_rate_update", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("id = 1", name="ck_settings_single_row"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("icon", sa.String(length=16), nullable=True),
        sa.Column("logo_url", sa.String(length=2048), nullable=True),
        sa.Column("url", sa.String(length=2048), nullable=True),
        sa.Column("price", sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("payment_cycle", sa.String(length=20), nullable=False, server_default="monthly"),
        sa.Column("custom_days", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.String(length=10), nullable=False),
        sa.Column("next_due_date", sa.String(length=10), nullable=False),
        sa.Column("payment_method", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("notify_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notify_days", sa.String(length=255), nullable=False, server_default="7,3,1,0"),
        sa.Column("notify_time", sa.String(length=5), nullable=False, server_default="09:00"),
        sa.Column("notify_channel_ids", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_subscriptions_notify_enabled"), "subscriptions", ["notify_enabled"], unique=False
    )

    op.create_table(
        "webhook_channels",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("template", sa.Text(), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "exchange_rates",
        sa.Column("currency_code", sa.String(length=3), nullable=False),
        sa.Column("rate", sa.Float(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("currency_code"),
    )

    op.create_table(
        "logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("level", sa.String(length=10), nullable=False),
        sa.Column("scope", sa.String(length=100), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_logs_level", "logs", ["level"], unique=False)
    op.create_index("ix_logs_scope", "logs", ["scope"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_logs_scope", table_name="logs")
    op.drop_index("ix_logs_level", table_name="logs")
    op.drop_table("logs")
    op.drop_table("exchange_rates")
    op.drop_table("webhook_channels")
    op.drop_index(op.f("ix_subscriptions_notify_enabled"), table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_table("settings")

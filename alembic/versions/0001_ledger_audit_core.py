"""Create ledger, audit and back-office core tables.

Revision ID: 0001_ledger_audit_core
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_ledger_audit_core"
down_revision = None
branch_labels = None
depends_on = None

ACCOUNT_TYPES = ("ASSET", "LIABILITY", "EQUITY", "REVENUE", "EXPENSE", "OTHER")
REFERENCE_TYPES = (
    "PURCHASE",
    "SALE",
    "EXPENSE",
    "PAYMENT_RECEIVED",
    "BILL_PAYMENT",
    "ADJUSTMENT",
    "COMMISSION_PAYMENT",
    "INVENTORY_ADJUSTMENT",
)
AUDIT_ACTIONS = ("CREATE", "UPDATE", "DELETE", "ADJUSTMENT", "LOGIN", "VIEW")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_timestamps(),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "api_keys",
        *_timestamps(),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("prefix", sa.String(length=32), nullable=False),
        sa.Column("key_hash", sa.String(length=128), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("name", name="uq_api_keys_name"),
        sa.UniqueConstraint("key_hash", name="uq_api_keys_key_hash"),
    )
    op.create_index("ix_api_keys_prefix", "api_keys", ["prefix"], unique=False)
    op.create_index("ix_api_keys_user_id", "api_keys", ["user_id"], unique=False)

    op.create_table(
        "chart_of_accounts",
        *_timestamps(),
        sa.Column("account_name", sa.String(length=150), nullable=False),
        sa.Column("account_type", sa.Enum(*ACCOUNT_TYPES, name="chart_of_account_type"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "parent_id",
            sa.Integer(),
            sa.ForeignKey("chart_of_accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("path", sa.Text(), nullable=True),
        sa.Column("depth", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_control_account", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("account_name", name="uq_chart_of_accounts_account_name"),
    )
    op.create_index("ix_chart_of_accounts_parent_id", "chart_of_accounts", ["parent_id"], unique=False)
    op.create_index("ix_chart_of_accounts_is_active", "chart_of_accounts", ["is_active"], unique=False)

    op.create_table(
        "journal_entries",
        *_timestamps(),
        sa.Column("entry_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "reference_type",
            sa.Enum(*REFERENCE_TYPES, name="journal_entry_reference_type"),
            nullable=False,
        ),
        sa.Column("reference_id", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("total_debit", sa.Numeric(18, 2, asdecimal=True), nullable=False),
        sa.Column("total_credit", sa.Numeric(18, 2, asdecimal=True), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("reversal_of_id", sa.Integer(), sa.ForeignKey("journal_entries.id"), nullable=True),
        sa.UniqueConstraint("reversal_of_id", name="uq_journal_entries_reversal_of_id"),
    )
    op.create_index("ix_journal_entries_entry_date", "journal_entries", ["entry_date"], unique=False)
    op.create_index("ix_journal_entries_reference_id", "journal_entries", ["reference_id"], unique=False)
    op.create_index("ix_journal_entries_user_id", "journal_entries", ["user_id"], unique=False)

    op.create_table(
        "journal_entry_lines",
        *_timestamps(),
        sa.Column(
            "journal_entry_id", sa.Integer(), sa.ForeignKey("journal_entries.id"), nullable=False
        ),
        sa.Column(
            "chart_of_account_id", sa.Integer(), sa.ForeignKey("chart_of_accounts.id"), nullable=False
        ),
        sa.Column("debit", sa.Numeric(18, 2, asdecimal=True), nullable=False, server_default="0"),
        sa.Column("credit", sa.Numeric(18, 2, asdecimal=True), nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.CheckConstraint("debit >= 0 AND credit >= 0", name="ck_journal_line_non_negative"),
        sa.CheckConstraint("debit = 0 OR credit = 0", name="ck_journal_line_single_side"),
    )
    op.create_index(
        "ix_journal_entry_lines_journal_entry_id", "journal_entry_lines", ["journal_entry_id"], unique=False
    )
    op.create_index(
        "ix_journal_entry_lines_chart_of_account_id",
        "journal_entry_lines",
        ["chart_of_account_id"],
        unique=False,
    )

    op.create_table(
        "expenses",
        *_timestamps(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2, asdecimal=True), nullable=False),
        sa.Column("expense_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "expense_account_id", sa.Integer(), sa.ForeignKey("chart_of_accounts.id"), nullable=False
        ),
        sa.Column(
            "paying_account_id", sa.Integer(), sa.ForeignKey("chart_of_accounts.id"), nullable=False
        ),
        sa.Column("journal_entry_id", sa.Integer(), sa.ForeignKey("journal_entries.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint("amount > 0", name="ck_expense_positive_amount"),
    )
    op.create_index("ix_expenses_is_active", "expenses", ["is_active"], unique=False)

    op.create_table(
        "audit_logs",
        *_timestamps(),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("user_name", sa.String(length=150), nullable=True),
        sa.Column("action_type", sa.Enum(*AUDIT_ACTIONS, name="audit_action_type"), nullable=False),
        sa.Column("table_name", sa.String(length=100), nullable=False),
        sa.Column("record_id", sa.String(length=64), nullable=True),
        sa.Column("old_data", sa.JSON(), nullable=True),
        sa.Column("new_data", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=100), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"], unique=False)
    op.create_index("ix_audit_logs_action_type", "audit_logs", ["action_type"], unique=False)
    op.create_index("ix_audit_logs_table_record", "audit_logs", ["table_name", "record_id"], unique=False)
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_table_record", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action_type", table_name="audit_logs")
    op.drop_index("ix_audit_logs_user_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_expenses_is_active", table_name="expenses")
    op.drop_table("expenses")

    op.drop_index("ix_journal_entry_lines_chart_of_account_id", table_name="journal_entry_lines")
    op.drop_index("ix_journal_entry_lines_journal_entry_id", table_name="journal_entry_lines")
    op.drop_table("journal_entry_lines")

    op.drop_index("ix_journal_entries_user_id", table_name="journal_entries")
    op.drop_index("ix_journal_entries_reference_id", table_name="journal_entries")
    op.drop_index("ix_journal_entries_entry_date", table_name="journal_entries")
    op.drop_table("journal_entries")

    op.drop_index("ix_chart_of_accounts_is_active", table_name="chart_of_accounts")
    op.drop_index("ix_chart_of_accounts_parent_id", table_name="chart_of_accounts")
    op.drop_table("chart_of_accounts")

    op.drop_index("ix_api_keys_user_id", table_name="api_keys")
    op.drop_index("ix_api_keys_prefix", table_name="api_keys")
    op.drop_table("api_keys")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_name in ("audit_action_type", "journal_entry_reference_type", "chart_of_account_type"):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)

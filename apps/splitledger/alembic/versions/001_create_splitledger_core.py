"""Create users, groups, expenses and settlements tables."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001_create_splitledger_core"
down_revision = None
branch_labels = None
depends_on = None


member_role_enum = postgresql.ENUM(
    "admin", "member", name="member_role", create_type=False
)
expense_category_enum = postgresql.ENUM(
    "general",
    "food",
    "transport",
    "entertainment",
    "utilities",
    "shopping",
    "healthcare",
    "education",
    "travel",
    "other",
    name="expense_category",
    create_type=False,
)
payment_method_enum = postgresql.ENUM(
    "cash",
    "bank_transfer",
    "upi",
    "paypal",
    "venmo",
    "credit_card",
    "debit_card",
    "other",
    name="payment_method",
    create_type=False,
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False
    )


def _timestamp(name: str, *, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    """Apply schema upgrades."""
    bind = op.get_bind()
    member_role_enum.create(bind, checkfirst=True)
    expense_category_enum.create(bind, checkfirst=True)
    payment_method_enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("display_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        _timestamp("created_at"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "groups",
        _uuid_pk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "created_by",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        _timestamp("created_at"),
    )

    op.create_table(
        "group_members",
        _uuid_pk(),
        sa.Column(
            "group_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column("role", member_role_enum, nullable=False, server_default="member"),
        _timestamp("joined_at"),
        _timestamp("left_at", nullable=True),
    )
    op.create_index(
        "ix_group_members_group_user", "group_members", ["group_id", "user_id"]
    )

    op.create_table(
        "expenses",
        _uuid_pk(),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "category",
            expense_category_enum,
            nullable=False,
            server_default="general",
        ),
        sa.Column("receipt_url", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column(
            "created_by",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column(
            "group_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("groups.id"),
            nullable=True,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
    )
    op.create_index("ix_expenses_group_id", "expenses", ["group_id"])

    op.create_table(
        "expense_participants",
        _uuid_pk(),
        sa.Column(
            "expense_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("expenses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column("paid_amount", sa.Numeric(14, 4), nullable=False),
        sa.Column("owed_amount", sa.Numeric(14, 4), nullable=False),
        sa.Column(
            "is_settled", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        _timestamp("settled_at", nullable=True),
        _timestamp("created_at"),
        sa.UniqueConstraint(
            "expense_id",
            "user_id",
            name="uq_expense_participants_expense_user",
        ),
        sa.CheckConstraint("paid_amount >= 0", name="ck_expense_participants_paid"),
        sa.CheckConstraint("owed_amount >= 0", name="ck_expense_participants_owed"),
    )
    op.create_index(
        "ix_expense_participants_user_id", "expense_participants", ["user_id"]
    )

    op.create_table(
        "settlements",
        _uuid_pk(),
        sa.Column(
            "payer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column(
            "payee_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "payment_method",
            payment_method_enum,
            nullable=False,
            server_default="cash",
        ),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "group_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("groups.id"),
            nullable=True,
        ),
        sa.Column(
            "is_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        _timestamp("confirmed_at", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("deleted_at", nullable=True),
        sa.CheckConstraint("amount > 0", name="ck_settlements_amount_positive"),
        sa.CheckConstraint(
            "payer_id <> payee_id", name="ck_settlements_distinct_users"
        ),
    )
    op.create_index(
        "ix_settlements_payer_payee", "settlements", ["payer_id", "payee_id"]
    )
    op.create_index("ix_settlements_group_id", "settlements", ["group_id"])


def downgrade() -> None:
    """Revert schema upgrades."""
    op.drop_index("ix_settlements_group_id", table_name="settlements")
    op.drop_index("ix_settlements_payer_payee", table_name="settlements")
    op.drop_table("settlements")
    op.drop_index(
        "ix_expense_participants_user_id", table_name="expense_participants"
    )
    op.drop_table("expense_participants")
    op.drop_index("ix_expenses_group_id", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_group_members_group_user", table_name="group_members")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("users")

    bind = op.get_bind()
    payment_method_enum.drop(bind, checkfirst=True)
    expense_category_enum.drop(bind, checkfirst=True)
    member_role_enum.drop(bind, checkfirst=True)

"""Initial rental core schema

Revision ID: 3a1f0c9d2b7e
Revises:
Create Date: 2026-10-17 09:12:04.118233

"""

import sqlalchemy as sa

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "3a1f0c9d2b7e"
down_revision = None
branch_labels = None
depends_on = None

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

USER_TYPE = sa.Enum("host", "guest", "admin", name="user_type")
RESERVATION_STATUS = sa.Enum(
    "pending", "confirmed", "cancelled", "completed", name="reservation_status"
)
PAYMENT_METHOD = sa.Enum(
    "credit_card", "debit_card", "paypal", "mobile_money", "bank_transfer", name="payment_method"
)
PAYMENT_STATUS = sa.Enum("pending", "completed", "failed", "refunded", name="payment_status")
EXPENSE_CATEGORY = sa.Enum(
    "cleaning",
    "maintenance",
    "utilities",
    "supplies",
    "tax",
    "insurance",
    "other",
    name="expense_category",
)
ACCOUNT_TYPE = sa.Enum(
    "asset", "liability", "equity", "income", "expense", "tax", name="account_type"
)

# Night snapshots and journal lines are append-only once committed.
POSTGRES_IMMUTABILITY = """
CREATE OR REPLACE FUNCTION reject_modification() RETURNS trigger AS $$
BEGIN
    RAISE EXCEPTION '% on % is not allowed', TG_OP, TG_TABLE_NAME;
END;
$$ LANGUAGE plpgsql;

CREATE TRIGGER reservation_nights_immutable
    BEFORE UPDATE ON reservation_nights
    FOR EACH ROW EXECUTE FUNCTION reject_modification();

CREATE TRIGGER journal_lines_immutable
    BEFORE UPDATE OR DELETE ON journal_lines
    FOR EACH ROW EXECUTE FUNCTION reject_modification();
"""


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("user_id", ID, primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(120), nullable=False, unique=True),
        sa.Column("phone", sa.String(25), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("user_type", USER_TYPE, nullable=False, server_default="guest"),
        _created_at(),
    )

    op.create_table(
        "locations",
        sa.Column("location_id", ID, primary_key=True, autoincrement=True),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("region", sa.String(100), nullable=False, server_default=""),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("neighborhood", sa.String(120), nullable=False, server_default=""),
        sa.Column("postal_code", sa.String(20), nullable=False, server_default=""),
        sa.Column("latitude", sa.Numeric(9, 6), nullable=True),
        sa.Column("longitude", sa.Numeric(9, 6), nullable=True),
        sa.UniqueConstraint(
            "country", "region", "city", "neighborhood", "postal_code", name="uq_loc"
        ),
    )

    op.create_table(
        "properties",
        sa.Column("property_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "host_id",
            ID,
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "location_id",
            ID,
            sa.ForeignKey("locations.location_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("title", sa.String(150), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address_line", sa.String(255), nullable=True),
        sa.Column("max_guests", sa.Integer(), nullable=False),
        sa.Column("base_price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        _created_at(),
        sa.CheckConstraint("base_price_per_night > 0", name="ck_prop_base_price"),
        sa.CheckConstraint("max_guests >= 1", name="ck_prop_max_guests"),
    )

    op.create_table(
        "amenities",
        sa.Column("amenity_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(80), nullable=False, unique=True),
        sa.Column("icon", sa.String(80), nullable=True),
    )

    op.create_table(
        "property_amenities",
        sa.Column(
            "property_id",
            ID,
            sa.ForeignKey("properties.property_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "amenity_id",
            sa.Integer(),
            sa.ForeignKey("amenities.amenity_id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "seasonal_prices",
        sa.Column("seasonal_price_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "property_id",
            ID,
            sa.ForeignKey("properties.property_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        _created_at(),
        sa.CheckConstraint("start_date <= end_date", name="ck_sp_range"),
        sa.CheckConstraint("price_per_night >= 0", name="ck_sp_price"),
    )
    op.create_index("idx_sp_range", "seasonal_prices", ["property_id", "start_date", "end_date"])

    op.create_table(
        "price_overrides",
        sa.Column("override_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "property_id",
            ID,
            sa.ForeignKey("properties.property_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("stay_date", sa.Date(), nullable=False),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        _created_at(),
        sa.UniqueConstraint("property_id", "stay_date", name="uq_override"),
        sa.CheckConstraint("price_per_night >= 0", name="ck_po_price"),
    )

    op.create_table(
        "reservations",
        sa.Column("reservation_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "property_id",
            ID,
            sa.ForeignKey("properties.property_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "guest_id",
            ID,
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("guests", sa.Integer(), nullable=True),
        sa.Column("status", RESERVATION_STATUS, nullable=False, server_default="pending"),
        sa.Column("subtotal_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint("check_in < check_out", name="ck_resv_dates"),
    )
    op.create_index(
        "idx_resv_property_dates", "reservations", ["property_id", "check_in", "check_out"]
    )
    op.create_index("idx_resv_guest_dates", "reservations", ["guest_id", "check_in", "check_out"])

    op.create_table(
        "reservation_nights",
        sa.Column("reservation_night_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "reservation_id",
            ID,
            sa.ForeignKey("reservations.reservation_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "property_id",
            ID,
            sa.ForeignKey("properties.property_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("stay_date", sa.Date(), nullable=False),
        sa.Column("nightly_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("cleaning_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("service_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("tax_rate_applied", sa.Numeric(7, 4), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column(
            "total_for_night",
            sa.Numeric(10, 2),
            sa.Computed(
                "nightly_price + cleaning_fee + service_fee + tax_amount", persisted=True
            ),
        ),
        sa.UniqueConstraint("reservation_id", "stay_date", name="uq_resv_night"),
    )
    op.create_index("idx_rn_property_date", "reservation_nights", ["property_id", "stay_date"])

    op.create_table(
        "payments",
        sa.Column("payment_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "payer_user_id",
            ID,
            sa.ForeignKey("users.user_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("method", PAYMENT_METHOD, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("status", PAYMENT_STATUS, nullable=False, server_default="pending"),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("idx_pay_status", "payments", ["status", "created_at"])

    op.create_table(
        "payment_allocations",
        sa.Column("allocation_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "payment_id",
            ID,
            sa.ForeignKey("payments.payment_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reservation_id",
            ID,
            sa.ForeignKey("reservations.reservation_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("amount_applied", sa.Numeric(12, 2), nullable=False),
        _created_at(),
        sa.UniqueConstraint("payment_id", "reservation_id", name="uq_pay_res"),
    )

    op.create_table(
        "expenses",
        sa.Column("expense_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "property_id",
            ID,
            sa.ForeignKey("properties.property_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("vendor_name", sa.String(150), nullable=True),
        sa.Column("category", EXPENSE_CATEGORY, nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("expense_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        _created_at(),
    )
    op.create_index("idx_exp_prop_date", "expenses", ["property_id", "expense_date"])

    op.create_table(
        "accounts",
        sa.Column("account_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(20), nullable=False, unique=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("type", ACCOUNT_TYPE, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")),
    )

    op.create_table(
        "journal_entries",
        sa.Column("journal_entry_id", ID, primary_key=True, autoincrement=True),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("memo", sa.String(255), nullable=True),
        sa.Column("event_type", sa.String(40), nullable=False),
        sa.Column("source_type", sa.String(40), nullable=False),
        sa.Column("source_id", ID, nullable=False),
        sa.Column(
            "reverses_entry_id",
            ID,
            sa.ForeignKey("journal_entries.journal_entry_id", ondelete="RESTRICT"),
            nullable=True,
            unique=True,
        ),
        _created_at(),
    )
    op.create_index("idx_je_source", "journal_entries", ["source_type", "source_id"])

    op.create_table(
        "journal_lines",
        sa.Column("journal_line_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "journal_entry_id",
            ID,
            sa.ForeignKey("journal_entries.journal_entry_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "account_id",
            sa.Integer(),
            sa.ForeignKey("accounts.account_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "property_id",
            ID,
            sa.ForeignKey("properties.property_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("debit", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("credit", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.CheckConstraint("NOT (debit > 0 AND credit > 0)", name="ck_jl_one_side"),
        sa.CheckConstraint("debit >= 0 AND credit >= 0", name="ck_jl_non_negative"),
    )

    op.create_table(
        "tax_rules",
        sa.Column("tax_rule_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "location_id",
            ID,
            sa.ForeignKey("locations.location_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.Column("tax_name", sa.String(120), nullable=False),
        sa.Column("rate", sa.Numeric(7, 4), nullable=False),
        sa.Column("is_percentage", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")),
        sa.UniqueConstraint("location_id", "tax_name", "effective_from", name="uq_tax_rule"),
        sa.CheckConstraint("rate >= 0", name="ck_tr_rate"),
    )

    op.create_table(
        "tax_returns",
        sa.Column("tax_return_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "location_id",
            ID,
            sa.ForeignKey("locations.location_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("tax_name", sa.String(120), nullable=False),
        sa.Column("declared_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("filed_on", sa.Date(), nullable=False),
        sa.Column("paid_on", sa.Date(), nullable=True),
        sa.Column("reference_no", sa.String(120), nullable=True),
        sa.CheckConstraint("period_start <= period_end", name="ck_taxret_period"),
    )

    op.create_table(
        "search_logs",
        sa.Column("search_id", ID, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            ID,
            sa.ForeignKey("users.user_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "searched_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
            index=True,
        ),
        sa.Column("check_in", sa.Date(), nullable=True),
        sa.Column("check_out", sa.Date(), nullable=True),
        sa.Column("guests", sa.Integer(), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("region", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("keywords", sa.String(255), nullable=True),
        sa.Column("shown_property_ids", sa.JSON(), nullable=True),
        sa.Column("clicked_property_id", ID, nullable=True, index=True),
    )

    if op.get_bind().dialect.name == "postgresql":
        op.execute(POSTGRES_IMMUTABILITY)


def downgrade() -> None:
    """Downgrade schema."""
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TRIGGER IF EXISTS journal_lines_immutable ON journal_lines")
        op.execute("DROP TRIGGER IF EXISTS reservation_nights_immutable ON reservation_nights")
        op.execute("DROP FUNCTION IF EXISTS reject_modification()")

    for table in (
        "search_logs",
        "tax_returns",
        "tax_rules",
        "journal_lines",
        "journal_entries",
        "accounts",
        "expenses",
        "payment_allocations",
        "payments",
        "reservation_nights",
        "reservations",
        "price_overrides",
        "seasonal_prices",
        "property_amenities",
        "amenities",
        "properties",
        "locations",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (
        ACCOUNT_TYPE,
        EXPENSE_CATEGORY,
        PAYMENT_STATUS,
        PAYMENT_METHOD,
        RESERVATION_STATUS,
        USER_TYPE,
    ):
        enum.drop(bind, checkfirst=True)

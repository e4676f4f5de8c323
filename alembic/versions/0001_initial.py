"""initial insole order schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )


def upgrade() -> None:
    op.create_table(
        "partners",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        _created_at(),
    )
    op.create_table(
        "partner_account_infos",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "partner_id",
            sa.Integer(),
            sa.ForeignKey("partners.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("vat_country", sa.String(length=8), nullable=True),
    )
    op.create_index("ix_partner_account_infos_partner_id", "partner_account_infos", ["partner_id"])

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "partner_id",
            sa.Integer(),
            sa.ForeignKey("partners.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
    )
    op.create_index("ix_employees_partner_id", "employees", ["partner_id"])

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "partner_id",
            sa.Integer(),
            sa.ForeignKey("partners.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("customer_number", sa.Integer(), nullable=True),
        sa.Column("vorname", sa.String(length=120), nullable=True),
        sa.Column("nachname", sa.String(length=120), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("telefon", sa.String(length=64), nullable=True),
        sa.Column("wohnort", sa.String(length=255), nullable=True),
        sa.Column("fusslange1", sa.Float(), nullable=True),
        sa.Column("fusslange2", sa.Float(), nullable=True),
        sa.Column("fussbreite1", sa.Float(), nullable=True),
        sa.Column("fussbreite2", sa.Float(), nullable=True),
        sa.Column("kugelumfang1", sa.Float(), nullable=True),
        sa.Column("kugelumfang2", sa.Float(), nullable=True),
        sa.Column("rist1", sa.Float(), nullable=True),
        sa.Column("rist2", sa.Float(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_customers_partner_id", "customers", ["partner_id"])

    op.create_table(
        "screener_files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "customer_id",
            sa.Integer(),
            sa.ForeignKey("customers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _created_at(),
    )
    op.create_index("ix_screener_files_customer_id", "screener_files", ["customer_id"])

    op.create_table(
        "customer_histories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "customer_id",
            sa.Integer(),
            sa.ForeignKey("customers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=True),
        sa.Column("note", sa.Text(), nullable=False, server_default=""),
        sa.Column("system_note", sa.Text(), nullable=True),
        sa.Column("payment_is", sa.String(length=32), nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_customer_histories_customer_event", "customer_histories", ["customer_id", "event_id"]
    )

    op.create_table(
        "stores",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "partner_id",
            sa.Integer(),
            sa.ForeignKey("partners.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("produktname", sa.String(length=255), nullable=False),
        sa.Column("hersteller", sa.String(length=255), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="rady_insole"),
        sa.Column("groessen_mengen", sa.JSON(), nullable=False),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("ix_stores_partner_type", "stores", ["partner_id", "type"])

    op.create_table(
        "store_histories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "store_id",
            sa.Integer(),
            sa.ForeignKey("stores.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("change_type", sa.String(length=32), nullable=False, server_default="sales"),
        sa.Column("size_key", sa.String(length=32), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("new_stock", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=True),
        sa.Column("partner_id", sa.Integer(), nullable=True),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("order_id", sa.Integer(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_store_histories_store_created", "store_histories", ["store_id", "created_at"])
    op.create_index("ix_store_histories_order_id", "store_histories", ["order_id"])

    op.create_table(
        "supplies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("versorgung", sa.Text(), nullable=True),
        sa.Column("rohling_hersteller", sa.String(length=255), nullable=True),
        sa.Column("artikel_hersteller", sa.String(length=255), nullable=True),
        sa.Column("material", sa.JSON(), nullable=False),
        sa.Column("diagnosis_status", sa.JSON(), nullable=False),
        sa.Column("supply_type", sa.String(length=16), nullable=False, server_default="public"),
        sa.Column("supply_status_id", sa.Integer(), nullable=True),
        sa.Column(
            "store_id",
            sa.Integer(),
            sa.ForeignKey("stores.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "partner_id",
            sa.Integer(),
            sa.ForeignKey("partners.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "customer_id",
            sa.Integer(),
            sa.ForeignKey("customers.id", ondelete="CASCADE"),
            nullable=True,
        ),
        _created_at(),
    )
    op.create_index("ix_supplies_store_id", "supplies", ["store_id"])
    op.create_index("ix_supplies_partner_id", "supplies", ["partner_id"])

    op.create_table(
        "customer_products",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("rohling_hersteller", sa.String(length=255), nullable=True),
        sa.Column("artikel_hersteller", sa.String(length=255), nullable=True),
        sa.Column("versorgung", sa.Text(), nullable=True),
        sa.Column("material", sa.Text(), nullable=False, server_default=""),
        sa.Column("langenempfehlung", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=64), nullable=False, server_default="Alltagseinlagen"),
        sa.Column("diagnosis_status", sa.JSON(), nullable=False),
    )

    op.create_table(
        "customer_orders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_number", sa.Integer(), nullable=False),
        sa.Column(
            "partner_id",
            sa.Integer(),
            sa.ForeignKey("partners.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "customer_id",
            sa.Integer(),
            sa.ForeignKey("customers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "supply_id",
            sa.Integer(),
            sa.ForeignKey("supplies.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("customer_products.id", ondelete="RESTRICT"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "store_id", sa.Integer(), sa.ForeignKey("stores.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "screener_id",
            sa.Integer(),
            sa.ForeignKey("screener_files.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("matched_size_key", sa.String(length=32), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="rady_insole"),
        sa.Column("supply_type", sa.String(length=16), nullable=False, server_default="public"),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("fussanalyse_preis", sa.Numeric(12, 2), nullable=True),
        sa.Column("einlagenversorgung_preis", sa.Numeric(12, 2), nullable=True),
        sa.Column("discount", sa.Float(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("bezahlt", sa.String(length=32), nullable=False),
        sa.Column(
            "order_status",
            sa.String(length=64),
            nullable=False,
            server_default="Warten_auf_Versorgungsstart",
        ),
        sa.Column("status_update", sa.DateTime(timezone=True), nullable=True),
        sa.Column("einlagentyp", sa.String(length=255), nullable=True),
        sa.Column("ueberzug", sa.String(length=255), nullable=True),
        sa.Column("versorgung_note", sa.Text(), nullable=True),
        sa.Column("schuhmodell_waehlen", sa.String(length=255), nullable=True),
        sa.Column("kostenvoranschlag", sa.Boolean(), nullable=True),
        sa.Column("ausfuehrliche_diagnose", sa.Text(), nullable=True),
        sa.Column("versorgung_laut_arzt", sa.Text(), nullable=True),
        sa.Column("kunden_name", sa.String(length=255), nullable=True),
        sa.Column("auftrags_datum", sa.DateTime(timezone=True), nullable=True),
        sa.Column("wohnort", sa.String(length=255), nullable=True),
        sa.Column("telefon", sa.String(length=64), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("geschaeftsstandort", sa.JSON(), nullable=True),
        sa.Column("mitarbeiter", sa.String(length=255), nullable=True),
        sa.Column("fertigstellung_bis", sa.DateTime(timezone=True), nullable=True),
        sa.Column("versorgung", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_customer_orders_partner_number", "customer_orders", ["partner_id", "order_number"]
    )
    op.create_index("ix_customer_orders_customer", "customer_orders", ["customer_id"])

    op.create_table(
        "customer_order_histories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "order_id",
            sa.Integer(),
            sa.ForeignKey("customer_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status_from", sa.String(length=64), nullable=False),
        sa.Column("status_to", sa.String(length=64), nullable=False),
        sa.Column("partner_id", sa.Integer(), nullable=True),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_customer_order_histories_order_id", "customer_order_histories", ["order_id"]
    )

    op.create_table(
        "customer_order_insurances",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "order_id",
            sa.Integer(),
            sa.ForeignKey("customer_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("price", sa.Numeric(12, 2), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("vat_country", sa.String(length=8), nullable=True),
    )
    op.create_index(
        "ix_customer_order_insurances_order_id", "customer_order_insurances", ["order_id"]
    )

    op.create_table(
        "customer_order_insole_standards",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "order_id",
            sa.Integer(),
            sa.ForeignKey("customer_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("left", sa.Float(), nullable=False, server_default="0"),
        sa.Column("right", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_favorite", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index(
        "ix_customer_order_insole_standards_order_id",
        "customer_order_insole_standards",
        ["order_id"],
    )

    op.create_table(
        "partner_order_counters",
        sa.Column(
            "partner_id",
            sa.Integer(),
            sa.ForeignKey("partners.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("scope", sa.String(length=32), primary_key=True, server_default="insole"),
        sa.Column("last_value", sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("partner_order_counters")
    op.drop_index(
        "ix_customer_order_insole_standards_order_id", table_name="customer_order_insole_standards"
    )
    op.drop_table("customer_order_insole_standards")
    op.drop_index("ix_customer_order_insurances_order_id", table_name="customer_order_insurances")
    op.drop_table("customer_order_insurances")
    op.drop_index("ix_customer_order_histories_order_id", table_name="customer_order_histories")
    op.drop_table("customer_order_histories")
    op.drop_index("ix_customer_orders_customer", table_name="customer_orders")
    op.drop_index("ix_customer_orders_partner_number", table_name="customer_orders")
    op.drop_table("customer_orders")
    op.drop_table("customer_products")
    op.drop_index("ix_supplies_partner_id", table_name="supplies")
    op.drop_index("ix_supplies_store_id", table_name="supplies")
    op.drop_table("supplies")
    op.drop_index("ix_store_histories_order_id", table_name="store_histories")
    op.drop_index("ix_store_histories_store_created", table_name="store_histories")
    op.drop_table("store_histories")
    op.drop_index("ix_stores_partner_type", table_name="stores")
    op.drop_table("stores")
    op.drop_index("ix_customer_histories_customer_event", table_name="customer_histories")
    op.drop_table("customer_histories")
    op.drop_index("ix_screener_files_customer_id", table_name="screener_files")
    op.drop_table("screener_files")
    op.drop_index("ix_customers_partner_id", table_name="customers")
    op.drop_table("customers")
    op.drop_index("ix_employees_partner_id", table_name="employees")
    op.drop_table("employees")
    op.drop_index("ix_partner_account_infos_partner_id", table_name="partner_account_infos")
    op.drop_table("partner_account_infos")
    op.drop_table("partners")

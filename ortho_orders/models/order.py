from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ortho_orders.db.base import Base

ORDER_STATUS_INITIAL = "Warten_auf_Versorgungsstart"


class CustomerProduct(Base):
    """
    下单时 Versorgung 的快照（每单独占，创建后不再修改）。

    material 按逗号拼接存储，读出时再拆回列表。
    """

    __tablename__ = "customer_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    rohling_hersteller: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    artikel_hersteller: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    versorgung: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    material: Mapped[str] = mapped_column(Text, nullable=False, default="")
    langenempfehlung: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(64), nullable=False, default="Alltagseinlagen")
    diagnosis_status: Mapped[List[Any]] = mapped_column(JSON, nullable=False, default=list)


class CustomerOrder(Base):
    """
    鞋垫订单主档。

    - order_number：partner 维度递增（起始 1000），没有唯一约束
    - matched_size_key：下单校验时选中的尺码 / 毛坯块，库存预占按它扣减
    """

    __tablename__ = "customer_orders"
    __table_args__ = (
        # 取 max(order_number) 的路径
        Index("ix_customer_orders_partner_number", "partner_id", "order_number"),
        Index("ix_customer_orders_customer", "customer_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)

    partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="CASCADE"), nullable=False
    )
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    supply_id: Mapped[int] = mapped_column(
        ForeignKey("supplies.id", ondelete="RESTRICT"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("customer_products.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    store_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("stores.id", ondelete="SET NULL"), nullable=True
    )
    employee_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("employees.id", ondelete="SET NULL"), nullable=True
    )
    screener_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("screener_files.id", ondelete="SET NULL"), nullable=True
    )

    matched_size_key: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="rady_insole")
    supply_type: Mapped[str] = mapped_column(String(16), nullable=False, default="public")

    # 金额
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    fussanalyse_preis: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    einlagenversorgung_preis: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    discount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    bezahlt: Mapped[str] = mapped_column(String(32), nullable=False)
    order_status: Mapped[str] = mapped_column(
        String(64), nullable=False, default=ORDER_STATUS_INITIAL
    )
    status_update: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # 工坊填写的附加信息（原样保存）
    einlagentyp: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ueberzug: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    versorgung_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    schuhmodell_waehlen: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    kostenvoranschlag: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    ausfuehrliche_diagnose: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    versorgung_laut_arzt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    kunden_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    auftrags_datum: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    wohnort: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    telefon: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    geschaeftsstandort: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    mitarbeiter: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    fertigstellung_bis: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    versorgung: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    product: Mapped["CustomerProduct"] = relationship("CustomerProduct", lazy="selectin")
    insurances: Mapped[List["CustomerOrderInsurance"]] = relationship(
        "CustomerOrderInsurance",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    insole_standards: Mapped[List["CustomerOrderInsoleStandard"]] = relationship(
        "CustomerOrderInsoleStandard",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<CustomerOrder id={self.id} no={self.order_number} partner_id={self.partner_id} "
            f"size={self.matched_size_key!r}>"
        )


class CustomerOrderHistory(Base):
    """订单状态流转审计（只追加）"""

    __tablename__ = "customer_order_histories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("customer_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status_from: Mapped[str] = mapped_column(String(64), nullable=False)
    status_to: Mapped[str] = mapped_column(String(64), nullable=False)
    partner_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    employee_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class CustomerOrderInsurance(Base):
    __tablename__ = "customer_order_insurances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("customer_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    vat_country: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)


class CustomerOrderInsoleStandard(Base):
    __tablename__ = "customer_order_insole_standards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("customer_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    left: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    right: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

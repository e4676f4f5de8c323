from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from ortho_orders.db.base import Base


class Customer(Base):
    """
    客户主档 + 足部测量数据。

    下单流程只读：fusslange1/2 决定尺码匹配，其余测量值原样给前端展示。
    """

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("partners.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    customer_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    vorname: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    nachname: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    telefon: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    wohnort: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # 足长（mm），左右脚各一
    fusslange1: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    fusslange2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    fussbreite1: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    fussbreite2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    kugelumfang1: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    kugelumfang2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rist1: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rist2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Customer id={self.id} no={self.customer_number}>"


class ScreenerFile(Base):
    """足部扫描文件（外部筛查引用）；文件本体在对象存储，不在本服务。"""

    __tablename__ = "screener_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class CustomerHistory(Base):
    """客户时间线（只追加）"""

    __tablename__ = "customer_histories"
    __table_args__ = (Index("ix_customer_histories_customer_event", "customer_id", "event_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
    )
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    event_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    note: Mapped[str] = mapped_column(Text, nullable=False, default="")
    system_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_is: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
